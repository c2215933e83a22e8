from abc import ABC, abstractmethod
from urllib.parse import urlencode


def build_verification_link(base_url: str, token: str, session_id: str) -> str:
    query = urlencode({"token": token, "id": session_id})
    return f"{base_url.rstrip('/')}/interview/verify?{query}"


class Notifier(ABC):
    """
    Outbound candidate notifications.
    Fire-and-forget: implementations report failure through the return value.
    """

    @abstractmethod
    def send_verification(self, email: str, name: str, link: str) -> bool:
        """
        Send the verification link.
        Must return False on failure, never raise exception.
        """
        pass
