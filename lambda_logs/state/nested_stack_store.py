import copy
import logging
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class NestedStackConfigStore:
    """
    Logging payloads of functions that live in nested stacks.

    Written while the template is patched and read back after deployment,
    when the payloads are applied through the Lambda API. One store belongs
    to one deployment operation.
    """

    def __init__(self):
        self._configs: Dict[str, Dict[str, str]] = {}

    def put(self, function_id: str, payload: Dict[str, str]):
        if function_id in self._configs and self._configs[function_id] != payload:
            logger.warning(f"Replacing stored nested stack config for {function_id}")
        self._configs[function_id] = dict(payload)

    def get(self, function_id: str) -> Optional[Dict[str, str]]:
        payload = self._configs.get(function_id)
        return copy.deepcopy(payload) if payload is not None else None

    def __contains__(self, function_id):
        return function_id in self._configs

    def __len__(self):
        return len(self._configs)

    def function_ids(self):
        return list(self._configs)

    def clear(self):
        self._configs.clear()
