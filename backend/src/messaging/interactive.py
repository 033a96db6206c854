"""
Payload shaping for WhatsApp Business-API structured messages.

Generic button/list content from the API is converted into the Cloud API's
native interactive object; template components are normalized so every
parameter is a typed text parameter.
"""

from typing import Any, Optional, Union


def build_template_components(components: Optional[list[dict[str, Any]]]) -> list[dict[str, Any]]:
    """
    Normalize template components.

    Plain string parameters become {"type": "text", "text": value}; typed
    parameters pass through unchanged.

    Example:
        >>> build_template_components([{"type": "body", "parameters": ["Ana"]}])
        [{'type': 'body', 'parameters': [{'type': 'text', 'text': 'Ana'}]}]
    """
    normalized = []
    for component in components or []:
        normalized.append({
            "type": component["type"],
            "parameters": [_text_parameter(p) for p in component.get("parameters", [])],
        })
    return normalized


def _text_parameter(param: Union[str, dict[str, Any]]) -> dict[str, Any]:
    if isinstance(param, str):
        return {"type": "text", "text": param}
    return dict(param)


def _header(header: dict[str, Any]) -> dict[str, Any]:
    header_type = header["type"]
    if header_type == "text":
        return {"type": "text", "text": header.get("text") or ""}
    return {"type": header_type, header_type: {"link": header.get("media_url")}}


def _action(options: dict[str, Any]) -> dict[str, Any]:
    if options["type"] == "button":
        return {
            "buttons": [
                {"type": "reply", "reply": {"id": button["id"], "title": button["title"]}}
                for button in options["buttons"]
            ]
        }

    sections = []
    for section in options["sections"]:
        rows = []
        for row in section["rows"]:
            native_row = {"id": row["id"], "title": row["title"]}
            if row.get("description"):
                native_row["description"] = row["description"]
            rows.append(native_row)
        native_section: dict[str, Any] = {"rows": rows}
        if section.get("title"):
            native_section["title"] = section["title"]
        sections.append(native_section)
    return {"button": options["button"], "sections": sections}


def build_interactive_payload(
    to: str,
    content: dict[str, Any],
    options: dict[str, Any],
) -> dict[str, Any]:
    """
    Build a Cloud API interactive message object.

    Args:
        to: Recipient address as given by the caller
        content: {"header"?: {type, text?, media_url?}, "body": {text}, "footer"?: {text}}
        options: {"type": "button", "buttons": [...]} or
            {"type": "list", "button": str, "sections": [...]}

    Returns:
        Complete request body for the WhatsApp messages endpoint
    """
    interactive: dict[str, Any] = {"type": options["type"]}
    if content.get("header"):
        interactive["header"] = _header(content["header"])
    interactive["body"] = {"text": content["body"]["text"]}
    if content.get("footer"):
        interactive["footer"] = {"text": content["footer"]["text"]}
    interactive["action"] = _action(options)

    return {
        "messaging_product": "whatsapp",
        "recipient_type": "individual",
        "to": to,
        "type": "interactive",
        "interactive": interactive,
    }
