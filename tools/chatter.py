from typing import Dict, Any, List, Optional

NEW_ENTITY_LEAD_IN = "New {type} joined Community Slack as "
EXISTING_ENTITY_LEAD_IN = "{type} joined Community Slack as "


def lead_in_text(record_type: str, is_new: bool) -> str:
    template = NEW_ENTITY_LEAD_IN if is_new else EXISTING_ENTITY_LEAD_IN
    return template.format(type=record_type)


def build_feed_body(record_id: str, lead_in: str, display_name: str,
                    owner_id: Optional[str] = None) -> Dict[str, Any]:
    """
    Build a Chatter FeedItem announcing a community join.

    Args:
        record_id: Lead/Contact the post is attached to
        lead_in: Plain text before the bolded name
        display_name: Slack display name, rendered bold
        owner_id: Record owner to @mention, if any

    Returns:
        Request body for the feed-elements resource
    """
    segments: List[Dict[str, Any]] = []

    if owner_id:
        segments.append({"type": "Mention", "id": owner_id})
        lead_in = " " + lead_in

    segments.extend([
        {"type": "Text", "text": lead_in},
        {"type": "MarkupBegin", "markupType": "Bold"},
        {"type": "Text", "text": display_name},
        {"type": "MarkupEnd", "markupType": "Bold"},
    ])

    return {
        "body": {"messageSegments": segments},
        "feedElementType": "FeedItem",
        "subjectId": record_id,
    }
