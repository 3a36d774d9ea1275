from pydantic import ConfigDict
from pydantic.alias_generators import to_camel

# Wire config for payloads exchanged with the JS frontend and the survey store:
# camelCase on the wire, snake_case in Python, unknown keys ignored.
camel_config = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    extra="ignore",
)
