"""Notification message rendering."""

import structlog
from liquid import Environment

from songcamp.core.modules.comment.models import EntityRef, EntityType
from songcamp.core.modules.notification.models import NotificationType

logger = structlog.get_logger(__name__)

ENTITY_NOUNS: dict[EntityType, str] = {
    EntityType.SONG: "a song",
    EntityType.PROMPT: "a prompt",
    EntityType.ASSIGNMENT: "an assignment",
}

MESSAGE_TEMPLATES: dict[NotificationType, str] = {
    NotificationType.COMMENT_ON_SONG: "{{ actor }} commented on {{ subject }}",
    NotificationType.REPLY_TO_COMMENT: "{{ actor }} replied to your comment on {{ subject }}",
    NotificationType.REACTION_ON_COMMENT: (
        "{{ actor }} reacted{% if emoji %} {{ emoji }}{% endif %} to your comment on {{ subject }}"
    ),
    NotificationType.MENTION_IN_COMMENT: "{{ actor }} mentioned you in a comment on {{ subject }}",
}

_env = Environment()
_templates = {notification_type: _env.from_string(source) for notification_type, source in MESSAGE_TEMPLATES.items()}


def describe_entity(entity: EntityRef) -> str:
    """Quoted title when known, otherwise a noun phrase such as "a song"."""
    if entity.title:
        return f'"{entity.title}"'
    return ENTITY_NOUNS[entity.entity_type]


def render_message(notification_type: NotificationType, actor: str, entity: EntityRef, emoji: str | None = None) -> str:
    """Render the human-readable message for a fan-out notification.

    Raises:
        ValueError: If the type has no template or rendering fails
    """
    template = _templates.get(notification_type)
    if template is None:
        raise ValueError(f"No message template for notification type '{notification_type}'")
    try:
        return template.render(actor=actor, subject=describe_entity(entity), emoji=emoji)
    except Exception as e:
        logger.exception("message_render_failed", notification_type=notification_type, error=str(e))
        raise ValueError(f"Failed to render message: {e}") from e
