"""
Tool Definitions for LLM Function Calling
The single function the model may call in command mode.
"""

from typing import Any, Dict, List

RETURN_COMMAND = "return_command"

# Tool definitions in OpenAI function calling format
COMMAND_TOOLS: List[Dict[str, Any]] = [
    {
        "type": "function",
        "function": {
            "name": RETURN_COMMAND,
            "description": "Return a command to be executed along with any required binaries",
            "parameters": {
                "type": "object",
                "properties": {
                    "command": {
                        "type": "string",
                        "description": "The full command to be executed"
                    },
                    "binaries": {
                        "type": "array",
                        "items": {
                            "type": "string"
                        },
                        "description": "List of required binaries for the command"
                    }
                },
                "required": ["command"]
            }
        }
    }
]
