from shared.models.base import camel_config

__all__ = ["camel_config"]
