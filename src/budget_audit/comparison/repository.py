"""Local JSON repository for the raw documents fed to the comparison service."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ..utils.config import Config
from ..utils.logging import get_logger
from .errors import NotFoundError, ValidationError
from .weights import build_weight_map

logger = get_logger(__name__)

CARTS = "carts"
BUDGETS = "budgets"
WEIGHTS = "weights"

_BARE_ID = re.compile(r"^[a-zA-Z0-9-]+$")
_QUERY_ID = re.compile(r"orderFormId=([a-zA-Z0-9-]+)", re.IGNORECASE)
_PATH_ID = re.compile(r"orderForm/([a-zA-Z0-9-]+)", re.IGNORECASE)
_HEX_ID = re.compile(r"([a-f0-9]{32,})", re.IGNORECASE)


def extract_order_form_id(url_or_id: str) -> str:
    """
    Pull the cart id out of a cart URL, or accept a bare id.

    Args:
        url_or_id: Full cart URL, ``/orderForm/<id>`` path or the id itself

    Returns:
        The cart (orderForm) id

    Raises:
        ValidationError: If no id can be found
    """
    value = (url_or_id or "").strip()

    if _BARE_ID.match(value) and len(value) > 10:
        return value

    for pattern in (_QUERY_ID, _PATH_ID, _HEX_ID):
        match = pattern.search(value)
        if match:
            return match.group(1)

    raise ValidationError(
        f'Could not extract an orderFormId from "{url_or_id}". '
        "Provide the full cart URL or the id itself."
    )


class DocumentRepository:
    """Reads ``<base_dir>/<kind>/<id>.json`` documents."""

    def __init__(self, base_dir: Optional[Union[str, Path]] = None, config: Optional[Config] = None) -> None:
        if base_dir is None:
            base_dir = (config or Config()).get("documents_dir")
        self._base_dir = Path(base_dir)

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def _load(self, kind: str, document_id: str) -> Any:
        if not document_id or "/" in document_id or "\\" in document_id or document_id.startswith("."):
            raise ValidationError(f"Invalid document id: {document_id!r}")

        path = self._base_dir / kind / f"{document_id}.json"
        if not path.is_file():
            raise NotFoundError(f"{kind[:-1].capitalize()} {document_id} not found in {self._base_dir / kind}")

        logger.debug(f"Loading {path}")
        try:
            with path.open("r", encoding="utf-8") as handle:
                return json.load(handle)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Invalid JSON in {path}: {e}") from e

    def get_order_form(self, url_or_id: str) -> Dict[str, Any]:
        return self._load(CARTS, extract_order_form_id(url_or_id))

    def get_budget(self, budget_id: str) -> Dict[str, Any]:
        return self._load(BUDGETS, str(budget_id))

    def get_sku_weights(self, weights_id: str) -> Dict[str, float]:
        """
        Load a SKU weight map.

        The file holds either a list of catalog SKU records (``Id`` and
        ``WeightKg``) or a plain ``{sku_id: kg}`` object.
        """
        data = self._load(WEIGHTS, weights_id)
        if isinstance(data, list):
            return build_weight_map(data)
        if isinstance(data, dict):
            try:
                return {str(sku): float(kg or 0) for sku, kg in data.items()}
            except (TypeError, ValueError) as e:
                raise ValidationError(f"Invalid weight map {weights_id}: {e}") from e
        raise ValidationError(f"Weight document {weights_id} must be a list or an object")
