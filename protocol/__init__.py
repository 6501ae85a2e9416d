"""Afterlink command protocol: encoding, tolerant decoding and the client."""

from .codec import tolerant_loads, strip_code_fences, find_json_span
from .client import AfterlinkClient
from .session import ArticleQuestionSession, new_session_user_id

__all__ = [
    "tolerant_loads",
    "strip_code_fences",
    "find_json_span",
    "AfterlinkClient",
    "ArticleQuestionSession",
    "new_session_user_id",
]
