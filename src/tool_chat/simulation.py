# simulation.py
# A small in-memory scene used as the default tool provider.
#
# Every tool takes the parsed argument dict and returns text. The controller
# imports nothing from here; it only sees tool_schemas and available_functions.

from typing import Any, Callable

from tool_chat.models import ToolSchema

_SHAPES = ("box", "sphere", "cylinder", "plane")


class SceneSimulation:
    """Objects placed on a ground plane, addressable by name."""

    def __init__(self) -> None:
        self.objects: dict[str, dict[str, Any]] = {}

    # ------------------------------------------------------------------
    # Tools
    # ------------------------------------------------------------------

    def _tool_add_object(self, args: dict) -> str:
        name = str(args.get("name", "")).strip()
        shape = str(args.get("shape", "box")).strip().lower()
        if not name:
            return "Error: no name provided."
        if shape not in _SHAPES:
            return f"Error: unknown shape '{shape}'. Choose one of: {', '.join(_SHAPES)}."
        if name in self.objects:
            return f"Error: an object named '{name}' already exists."

        position = args.get("position") or [0, 0, 0]
        self.objects[name] = {
            "shape": shape,
            "position": [float(v) for v in position][:3],
            "color": args.get("color", "gray"),
        }
        return f"Added {shape} '{name}' at {self.objects[name]['position']}."

    def _tool_list_objects(self, args: dict) -> list[dict[str, Any]]:
        return [{"name": name, **spec} for name, spec in self.objects.items()]

    def _tool_clear_scene(self, args: dict) -> str:
        count = len(self.objects)
        self.objects.clear()
        return f"Removed {count} object(s)."

    # ------------------------------------------------------------------
    # Provider surface
    # ------------------------------------------------------------------

    @property
    def available_functions(self) -> dict[str, Callable[[dict], Any]]:
        return {
            "echo": lambda args: args.get("message", ""),
            "add_object": self._tool_add_object,
            "list_objects": self._tool_list_objects,
            "clear_scene": self._tool_clear_scene,
        }

    @property
    def tool_schemas(self) -> list[ToolSchema]:
        return [
            ToolSchema(
                name="echo",
                description="Repeat a message back verbatim.",
                parameters={
                    "type": "object",
                    "properties": {"message": {"type": "string"}},
                    "required": ["message"],
                },
            ),
            ToolSchema(
                name="add_object",
                description="Place a new named object in the scene.",
                parameters={
                    "type": "object",
                    "properties": {
                        "name": {"type": "string", "description": "Unique object name."},
                        "shape": {"type": "string", "enum": list(_SHAPES)},
                        "position": {
                            "type": "array",
                            "items": {"type": "number"},
                            "minItems": 3,
                            "maxItems": 3,
                            "description": "x, y, z in scene units.",
                        },
                        "color": {"type": "string"},
                    },
                    "required": ["name", "shape"],
                },
            ),
            ToolSchema(
                name="list_objects",
                description="List every object currently in the scene.",
            ),
            ToolSchema(
                name="clear_scene",
                description="Remove all objects from the scene.",
            ),
        ]
