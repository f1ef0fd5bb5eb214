"""Translation templates for messages reported by the driver."""

from collections.abc import Mapping

TEAM_ENGINE_ERROR = "TR.teamEngineError"
DEFAULT_LANGUAGE = "en"

TEMPLATES: Mapping[str, Mapping[str, str]] = {
    TEAM_ENGINE_ERROR: {
        "en": "OGC TEAM Engine reported a failed test: {error}",
        "de": "Die OGC TEAM Engine hat folgenden Fehler gemeldet: {error}",
    },
}


def render_message(
    template_key: str, text: str, language: str = DEFAULT_LANGUAGE
) -> str:
    """Render ``text`` with the template for ``language``.

    Falls back to the English template, and to the bare text for unknown keys.
    """
    templates = TEMPLATES.get(template_key)
    if templates is None:
        return text
    template = templates.get(language, templates[DEFAULT_LANGUAGE])
    return template.format(error=text)
