"""User notification preferences."""

from pydantic import BaseModel, Field

from foundersnet.models.notification import NotificationType

SETTINGS_KEY = "notificationSettings"


class NotificationSettings(BaseModel):
    """Email/push toggles per category.

    Stored under the ``notificationSettings`` key using the camelCase
    field names of the web client.
    """

    email_notifications: bool = Field(True, alias="emailNotifications")
    push_notifications: bool = Field(True, alias="pushNotifications")
    connection_requests: bool = Field(True, alias="connectionRequests")
    message_notifications: bool = Field(True, alias="messageNotifications")
    job_alerts: bool = Field(True, alias="jobAlerts")

    model_config = {"extra": "ignore", "populate_by_name": True}

    def category_enabled(self, notification_type: NotificationType) -> bool:
        """Whether alerts for a notification category are switched on."""
        if notification_type == NotificationType.CONNECTION:
            return self.connection_requests
        if notification_type in (NotificationType.MESSAGE, NotificationType.MENTION):
            return self.message_notifications
        if notification_type == NotificationType.JOB:
            return self.job_alerts
        # Pitch activity has no toggle of its own
        return True

    def allows_popup(self, notification_type: NotificationType) -> bool:
        """Whether a desktop popup may be shown for this category."""
        return self.push_notifications and self.category_enabled(notification_type)
