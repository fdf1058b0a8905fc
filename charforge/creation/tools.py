"""
Tool definitions offered to the chat model.
"""

import random
import re
from typing import Any, Dict, List, Optional

DICE_PATTERN = re.compile(r"^(\d*)d(\d+)$", re.IGNORECASE)


def dice_roll_tool() -> Dict[str, Any]:
    """Function-calling schema for the dice roller."""
    return {
        "type": "function",
        "function": {
            "name": "dice_roll",
            "description": "Roll dice using standard D&D notation (e.g., 1d20, 2d6).",
            "parameters": {
                "type": "object",
                "properties": {
                    "dice": {
                        "type": "string",
                        "description": "Dice notation, e.g. '1d20' or '4d6'",
                    }
                },
                "required": ["dice"],
            },
        },
    }


def roll_dice(dice: str, rng: Optional[random.Random] = None) -> List[int]:
    """
    Roll dice given in NdS notation.

    A missing count means one die. Invalid notation or zero sides returns
    an empty list.
    """
    match = DICE_PATTERN.match(dice.strip()) if dice else None
    if not match:
        return []

    count = int(match.group(1)) if match.group(1) else 1
    sides = int(match.group(2))
    if sides < 1:
        return []

    rng = rng or random
    return [rng.randint(1, sides) for _ in range(count)]


def execute_tool_call(name: str, arguments: Dict[str, Any], rng: Optional[random.Random] = None) -> Dict[str, Any]:
    """
    Run one tool call requested by the chat model.

    Returns the result payload sent back as the tool message. Unknown tools
    and unrollable notation produce an 'error' entry instead of raising, so
    the model can correct itself on the next round.
    """
    if name != "dice_roll":
        return {"tool": name, "error": f"Unknown tool: {name}"}

    dice = str(arguments.get("dice") or "")
    rolls = roll_dice(dice, rng=rng)
    if not rolls:
        return {"tool": name, "dice": dice, "error": f"Invalid dice notation: {dice!r}"}
    return {"tool": name, "dice": dice, "rolls": rolls, "total": sum(rolls)}
