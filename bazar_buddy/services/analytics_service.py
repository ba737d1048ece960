"""Spending analytics over a user's grocery lists."""

from datetime import date
from typing import List, Optional, Sequence

from ..models.grocery import MONTHS, round_money
from ..models.schemas import DashboardResponse, ListResponse, MonthlySpending


def last_months(today: date, count: int = 6):
    """(month name, year) pairs for the last ``count`` months, oldest first."""
    pairs = []
    for offset in range(count - 1, -1, -1):
        index = today.month - 1 - offset
        year = today.year + index // 12
        pairs.append((MONTHS[index % 12], year))
    return pairs


RECENT_LIST_COUNT = 5


def summarize_lists(
    lists: Sequence[ListResponse], today: Optional[date] = None, months: int = 6
) -> DashboardResponse:
    """Dashboard metrics for a set of lists; ``recent_lists`` holds the five newest."""
    today = today or date.today()

    total_lists = len(lists)
    total_items = sum(len(lst.items) for lst in lists)
    total_spent = round_money(sum(lst.total_estimated_price for lst in lists))
    average = round_money(total_spent / total_lists) if total_lists else 0.0

    recent = sorted(lists, key=lambda lst: lst.created_at, reverse=True)[:RECENT_LIST_COUNT]
    latest = recent[0] if recent else None

    series: List[MonthlySpending] = []
    for month, year in last_months(today, months):
        spent = sum(
            lst.total_estimated_price
            for lst in lists
            if lst.month == month and lst.year == year
        )
        series.append(MonthlySpending(name=month[:3], month=month, year=year, value=round_money(spent)))

    return DashboardResponse(
        total_lists=total_lists,
        total_items=total_items,
        total_spent=total_spent,
        average_per_list=average,
        latest_list=latest,
        recent_lists=recent,
        monthly_spending=series,
    )


class AnalyticsService:
    """Dashboard figures computed from the grocery service's lists."""

    def __init__(self, grocery_service):
        self.grocery_service = grocery_service

    async def dashboard(self, today: Optional[date] = None) -> DashboardResponse:
        lists = await self.grocery_service.get_lists()
        return summarize_lists([ListResponse.model_validate(lst) for lst in lists], today)
