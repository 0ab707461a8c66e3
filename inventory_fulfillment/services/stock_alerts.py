"""
Stock Alert Evaluator - read-only minimum stock checks

Levels by available stock as a percentage of the item's minimum:
    critico      0 %
    urgente      under 50 %
    advertencia  50 % up to (not including) 100 %
    ok           at or above the minimum
"""

from typing import Any, Dict, List
import logging
import math

from flask import current_app

from inventory_fulfillment.errors import NotFound
from inventory_fulfillment.models import AlertLevel, ItemThreshold
from inventory_fulfillment.repositories import StockRecordRepository, ThresholdRepository
from .stock_ledger import require_positive_quantity
from .transaction import transactional

logger = logging.getLogger(__name__)


def classify(available: int, minimum: int) -> AlertLevel:
    """Alert level for an available quantity against a minimum"""
    if minimum <= 0:
        return AlertLevel.OK
    percentage = available / minimum * 100
    if percentage <= 0:
        return AlertLevel.CRITICO
    if percentage < 50:
        return AlertLevel.URGENTE
    if percentage < 100:
        return AlertLevel.ADVERTENCIA
    return AlertLevel.OK


class StockAlertEvaluator:
    """Flags items whose available stock is below their configured minimum"""

    def __init__(self, stock_repository=None, threshold_repository=None, suggestion_buffer=None):
        self.stock_repo = stock_repository or StockRecordRepository()
        self.threshold_repo = threshold_repository or ThresholdRepository()
        self._suggestion_buffer = suggestion_buffer

    @property
    def suggestion_buffer(self) -> float:
        if self._suggestion_buffer is not None:
            return self._suggestion_buffer
        return float(current_app.config.get('ALERT_SUGGESTION_BUFFER', 0.2))

    @transactional('alerts.set_threshold')
    def set_threshold(self, item_id: str, minimum_quantity: int) -> ItemThreshold:
        """Create or update an item's minimum; zero disables alerts for it"""
        if not item_id:
            raise ValueError("item_id is required")
        if minimum_quantity != 0:
            require_positive_quantity(minimum_quantity)

        threshold = self.threshold_repo.get_by_item(item_id)
        if threshold is None:
            threshold = self.threshold_repo.add(ItemThreshold(item_id=item_id, minimum_quantity=minimum_quantity))
        else:
            threshold.minimum_quantity = minimum_quantity

        logger.info(f"Minimum stock for {item_id} set to {minimum_quantity}")
        return threshold

    def evaluate_item(self, item_id: str, warehouse_ids: List[str] = None) -> Dict[str, Any]:
        threshold = self.threshold_repo.get_by_item(item_id)
        if threshold is None:
            raise NotFound('item threshold', item_id)
        return self._evaluate([threshold], warehouse_ids)[0]

    def evaluate_all(self, warehouse_ids: List[str] = None) -> List[Dict[str, Any]]:
        return self._evaluate(self.threshold_repo.get_all(), warehouse_ids)

    def items_below_minimum(self, warehouse_ids: List[str] = None) -> List[Dict[str, Any]]:
        """Items below their minimum, most critical (lowest percentage) first"""
        below = [entry for entry in self.evaluate_all(warehouse_ids) if entry['is_below_minimum']]
        below.sort(key=lambda entry: (entry['stock_percentage'], entry['item_id']))
        return below

    def report(self, warehouse_ids: List[str] = None) -> Dict[str, Any]:
        below = self.items_below_minimum(warehouse_ids)
        evaluated = self.evaluate_all(warehouse_ids)

        grouped = {level.value: [] for level in AlertLevel if level != AlertLevel.OK}
        for entry in below:
            grouped[entry['level']].append(entry)

        return {
            'total_items': len(evaluated),
            'total_below_minimum': len(below),
            'summary': {
                'critico': len(grouped['critico']),
                'urgente': len(grouped['urgente']),
                'advertencia': len(grouped['advertencia']),
                'ok': len(evaluated) - len(below)
            },
            'items': grouped
        }

    def purchase_suggestions(self, warehouse_ids: List[str] = None) -> List[Dict[str, Any]]:
        """Reorder quantities: the shortfall plus a buffer share of the minimum, rounded up"""
        buffer = self.suggestion_buffer
        suggestions = []
        for entry in self.items_below_minimum(warehouse_ids):
            shortfall = entry['shortfall']
            suggestions.append({
                'item_id': entry['item_id'],
                'quantity_available': entry['quantity_available'],
                'minimum_quantity': entry['minimum_quantity'],
                'shortfall': shortfall,
                'suggested_quantity': math.ceil(shortfall + entry['minimum_quantity'] * buffer),
                'level': entry['level'],
                'stock_percentage': entry['stock_percentage']
            })
        return suggestions

    def _evaluate(self, thresholds: List[ItemThreshold], warehouse_ids: List[str] = None) -> List[Dict[str, Any]]:
        records = self.stock_repo.get_for_items([t.item_id for t in thresholds], warehouse_ids)
        by_item = {}
        for record in records:
            by_item.setdefault(record.item_id, []).append(record)

        results = []
        for threshold in thresholds:
            item_records = sorted(by_item.get(threshold.item_id, []), key=lambda r: r.warehouse_id)
            on_hand = sum(r.quantity_on_hand for r in item_records)
            reserved = sum(r.quantity_reserved for r in item_records)
            available = on_hand - reserved
            minimum = threshold.minimum_quantity
            percentage = round(available / minimum * 100, 2) if minimum > 0 else 100.0

            results.append({
                'item_id': threshold.item_id,
                'minimum_quantity': minimum,
                'quantity_on_hand': on_hand,
                'quantity_reserved': reserved,
                'quantity_available': available,
                'shortfall': max(minimum - available, 0),
                'stock_percentage': percentage,
                'is_below_minimum': available < minimum,
                'level': classify(available, minimum).value,
                'warehouses': [
                    {'warehouse_id': r.warehouse_id, 'quantity_available': r.quantity_available}
                    for r in item_records
                ]
            })
        return results
