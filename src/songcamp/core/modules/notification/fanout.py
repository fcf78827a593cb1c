"""Recipient computation for comment, reply, reaction and mention notifications.

Each rule yields at most one notification, and no identity is notified twice
for the same action: the actor is excluded up front and every recipient is
remembered as it is added, so mentions never duplicate the owner or parent
author notification. Identities compare case-insensitively.
"""

from songcamp.core.modules.comment.models import EntityType
from songcamp.core.modules.notification.messages import render_message
from songcamp.core.modules.notification.models import FanoutKind, FanoutTrigger, NotificationDraft, NotificationType


def compute_fanout(trigger: FanoutTrigger) -> list[NotificationDraft]:
    """Return the notifications to create for one completed action, in rule order."""
    drafts: list[NotificationDraft] = []
    notified = {trigger.actor_email.casefold()}

    def add(recipient: str, notification_type: NotificationType) -> None:
        key = recipient.casefold()
        if key in notified:
            return
        notified.add(key)
        drafts.append(
            NotificationDraft(
                recipient_email=recipient,
                type=notification_type,
                trigger_user_email=trigger.actor_email,
                trigger_user_name=trigger.actor_name,
                entity_type=trigger.entity.entity_type,
                entity_id=trigger.entity.entity_id,
                reference_id=trigger.comment.id,
                message=render_message(notification_type, trigger.actor_name, trigger.entity, trigger.emoji),
            )
        )

    if trigger.kind == FanoutKind.COMMENT:
        owner = trigger.entity.owner_email
        if trigger.comment.parent_id is None and trigger.entity.entity_type == EntityType.SONG and owner:
            add(owner, NotificationType.COMMENT_ON_SONG)
    elif trigger.kind == FanoutKind.REPLY:
        if trigger.parent is not None:
            add(trigger.parent.author_email, NotificationType.REPLY_TO_COMMENT)
    elif trigger.kind == FanoutKind.REACTION:
        add(trigger.comment.author_email, NotificationType.REACTION_ON_COMMENT)

    if trigger.kind != FanoutKind.REACTION:
        for email in trigger.mentions:
            add(email, NotificationType.MENTION_IN_COMMENT)

    return drafts
