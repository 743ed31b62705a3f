"""Reelcut agents package - transcribe, extract, trim."""

from agents.transcribe import TranscribeAgent
from agents.insights import InsightAgent
from agents.trim import TrimAgent

AGENT_REGISTRY = {
    "transcribe": TranscribeAgent,
    "insights": InsightAgent,
    "trim": TrimAgent,
}

PIPELINE_ORDER = [
    "transcribe",
    "insights",
    "trim",
]
