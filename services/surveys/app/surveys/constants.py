"""
Survey domain — static constants and enum types.
"""
import enum


class QuestionType(str, enum.Enum):
    TEXT = "text"
    MULTIPLE_CHOICE = "multiple-choice"
    CHECKBOX = "checkbox"
    DROPDOWN = "dropdown"
    SCALE = "scale"


class DurationUnit(str, enum.Enum):
    NONE = "none"
    MINUTES = "minutes"
    HOURS = "hours"
    DAYS = "days"


# Labels shown next to each question title in exported CSV headers
QUESTION_TYPE_LABELS: dict[str, str] = {
    QuestionType.MULTIPLE_CHOICE: "Opción múltiple",
    QuestionType.CHECKBOX: "Casillas de verificación",
    QuestionType.DROPDOWN: "Desplegable",
    QuestionType.TEXT: "Respuesta corta",
    QuestionType.SCALE: "Escala lineal",
}

# Seconds per duration unit, used to compute expires_at at publish time
DURATION_UNIT_SECONDS: dict[str, int] = {
    DurationUnit.MINUTES: 60,
    DurationUnit.HOURS: 3600,
    DurationUnit.DAYS: 86400,
}
