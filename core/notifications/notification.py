from typing import Any, Dict, List, Union


class Notification:
    """
    Base class for notifications.

    via() picks the channels; each to_<channel>() builds the payload for
    that channel. Unimplemented channels produce an empty payload.
    """

    def via(self, notifiable: Any) -> List[str]:
        return ["database"]

    def to_database(self, notifiable: Any) -> Dict[str, Any]:
        return {}

    def to_mail(self, notifiable: Any) -> Dict[str, Any]:
        return {}

    def to_log(self, notifiable: Any) -> Union[str, Dict[str, Any]]:
        return ""

    def payload_for(self, channel: str, notifiable: Any) -> Any:
        """The to_<channel>() result, or {} when the notification has no such method."""
        builder = getattr(self, f"to_{channel.lower()}", None)
        if builder is None:
            return {}
        return builder(notifiable)

    @classmethod
    def type_name(cls) -> str:
        return f"{cls.__module__}.{cls.__qualname__}"
