"""
Long-term coaching memory for athlete conversations.

This package focuses on:
- Extracting durable insights (injuries, goals, preferences, constraints) from chat
- Merging them against what is already stored for the athlete
- Ranking stored insights against a new message for prompt injection
"""

from .schema import ChatMessage, ConversationSummary, Insight, InsightCandidate
from .extractor import extract_insights
from .retrieval import rank_insights
from .service import CoachingMemory, StoreResult, process_conversation_insights
from .summarizer import auto_summarize_conversation, consolidate_conversation, tag_message
from .integration import (
    build_enhanced_coach_prompt,
    build_memory_context,
    detect_conflicts,
    recall_relevant_context,
)

__all__ = [
    "ChatMessage",
    "ConversationSummary",
    "Insight",
    "InsightCandidate",
    "extract_insights",
    "rank_insights",
    "CoachingMemory",
    "StoreResult",
    "process_conversation_insights",
    "auto_summarize_conversation",
    "consolidate_conversation",
    "tag_message",
    "build_enhanced_coach_prompt",
    "build_memory_context",
    "detect_conflicts",
    "recall_relevant_context",
]
