"""Topic, trend and gap mining over brand conversations."""

from .explorer import ConversationExplorer
from .models import Conversation, Message
from .schemas import AnalysisWindow, ClusteringOptions, GapOptions, SuggestionOptions, TrendOptions

__all__ = [
    "ConversationExplorer",
    "Conversation",
    "Message",
    "AnalysisWindow",
    "ClusteringOptions",
    "GapOptions",
    "SuggestionOptions",
    "TrendOptions",
]
