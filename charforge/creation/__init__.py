"""
Guided character creation - chat client, prompt, response normalization and turn service.
"""

from .schemas import AbilityScores, CharacterDraft, StructuredTurnResponse, CharacterCreationResponse
from .normalizer import normalize_response, NormalizationResult, StrictResult, FallbackResult
from .chat import ChatReply, OllamaChatClient
from .prompts import build_creation_prompt, format_context
from .session import CharacterCreationService, CharacterSink, TurnOutcome
from .tools import dice_roll_tool, execute_tool_call, roll_dice

__all__ = [
    'AbilityScores',
    'CharacterDraft',
    'StructuredTurnResponse',
    'CharacterCreationResponse',
    'normalize_response',
    'NormalizationResult',
    'StrictResult',
    'FallbackResult',
    'ChatReply',
    'OllamaChatClient',
    'build_creation_prompt',
    'format_context',
    'CharacterCreationService',
    'CharacterSink',
    'TurnOutcome',
    'dice_roll_tool',
    'execute_tool_call',
    'roll_dice'
]
