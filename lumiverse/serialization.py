import json
from typing import Any


class PackJSONEncoder(json.JSONEncoder):
    """
    JSON Encoder for canonical pack output.

    RULES:
    1. Contract objects (Pack, LumiaItem, SelectionRef, SettingsState)
       serialize through their own `to_dict` (camelCase wire keys).
    2. Anything else that is not plain JSON is an error, never stringified.
    """

    def default(self, obj: Any) -> Any:
        if hasattr(obj, "to_dict"):
            return obj.to_dict()
        return super().default(obj)


def dumps_pretty(obj: Any) -> str:
    """Pretty-printed (indent 2) JSON, the format written by the converter."""
    return json.dumps(obj, indent=2, ensure_ascii=False, cls=PackJSONEncoder)
