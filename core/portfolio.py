"""
Portfolio aggregate - owns its assets and keeps total_value equal to the sum
of their current values after every mutation.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from core.asset import Asset
from core.enums import AssetType
from core.errors import NotFoundError
from core.valuation import ZERO

logger = logging.getLogger(__name__)


class Portfolio:
    """
    A client's container of assets.

    Assets are held in insertion order. Mutations must be serialized by the
    caller per portfolio; nothing here is thread-safe.
    """

    def __init__(
        self,
        name: str,
        client_id: Optional[int] = None,
        description: Optional[str] = None,
        active: bool = True,
        assets: Optional[Iterable[Asset]] = None,
        portfolio_id: Optional[int] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ):
        self.id = portfolio_id
        self.name = name
        self.description = description
        self.client_id = client_id
        self.active = active
        self.created_at = created_at
        self.updated_at = updated_at
        self._assets: List[Asset] = []
        self._total_value: Decimal = ZERO
        for asset in assets or []:
            self._assets.append(asset)
            asset.portfolio_id = self.id
        self.recalculate_total_value()

    def __repr__(self) -> str:
        return f"Portfolio(id={self.id!r}, name={self.name!r}, assets={len(self._assets)}, total_value={self._total_value})"

    @property
    def assets(self) -> List[Asset]:
        return list(self._assets)

    @property
    def asset_count(self) -> int:
        return len(self._assets)

    @property
    def total_value(self) -> Decimal:
        return self._total_value

    def add_asset(self, asset: Asset) -> Decimal:
        """Take ownership of an asset and return the new total value."""
        self._assets.append(asset)
        asset.portfolio_id = self.id
        return self.recalculate_total_value()

    def remove_asset(self, asset: Asset) -> Decimal:
        """
        Detach an asset and return the new total value.

        Raises:
            NotFoundError: if the asset is not held by this portfolio
        """
        index = self._index_of(asset)
        if index is None:
            raise NotFoundError("Asset", asset.id if asset.id is not None else asset.name)
        detached = self._assets.pop(index)
        detached.portfolio_id = None
        return self.recalculate_total_value()

    def recalculate_total_value(self) -> Decimal:
        """Sum current values of all held assets, counting missing values as zero."""
        self._total_value = sum(
            (asset.current_value for asset in self._assets if asset.current_value is not None),
            ZERO,
        )
        return self._total_value

    def get_asset(self, asset_id: int) -> Asset:
        for asset in self._assets:
            if asset.id == asset_id:
                return asset
        raise NotFoundError("Asset", asset_id)

    def update_asset_price(self, asset_id: int, new_price) -> Asset:
        """Set an asset's current price, revalue it and refresh the total."""
        asset = self.get_asset(asset_id)
        asset.current_price = new_price
        self.recalculate_total_value()
        return asset

    def update_asset(self, asset_id: int, **changes) -> Asset:
        """Edit a held asset's attributes and refresh the total."""
        asset = self.get_asset(asset_id)
        asset.update(**changes)
        self.recalculate_total_value()
        return asset

    def value_by_type(self) -> Dict[AssetType, Decimal]:
        """Total current value per asset type, only for types present."""
        totals: Dict[AssetType, Decimal] = {}
        for asset in self._assets:
            value = asset.current_value if asset.current_value is not None else ZERO
            totals[asset.asset_type] = totals.get(asset.asset_type, ZERO) + value
        return totals

    def activate(self) -> None:
        self.active = True

    def deactivate(self) -> None:
        self.active = False

    def _index_of(self, asset: Asset) -> Optional[int]:
        for i, held in enumerate(self._assets):
            if held is asset:
                return i
        if asset.id is not None:
            for i, held in enumerate(self._assets):
                if held.id == asset.id:
                    return i
        return None
