"""
Calendar View
Month grid (Monday-first weeks) of daily P&L for the calendar heatmap
"""
import calendar
from datetime import date
from typing import Dict, Iterable, List


def build_month_grid(year: int, month: int, performance: Iterable) -> Dict:
    """
    Lay out a month as full weeks, padded with days of the neighbouring months.

    Args:
        year, month: Month to display
        performance: DailyPerformance rows (any object with date/pnl/trades_count/win_count/loss_count)

    Returns:
        {"year", "month", "weeks": [[day cell x7], ...], "summary": {...}}
    """
    by_day = {row.date.date() if hasattr(row.date, "date") else row.date: row for row in performance}

    weeks: List[List[Dict]] = []
    for week in calendar.Calendar(firstweekday=calendar.MONDAY).monthdatescalendar(year, month):
        cells = []
        for day in week:
            row = by_day.get(day)
            cells.append({
                "date": day.isoformat(),
                "inMonth": day.month == month,
                "pnl": row.pnl if row else None,
                "tradesCount": row.trades_count if row else 0,
                "winCount": row.win_count if row else 0,
                "lossCount": row.loss_count if row else 0,
            })
        weeks.append(cells)

    month_rows = [row for day, row in by_day.items() if day.year == year and day.month == month]

    return {
        "year": year,
        "month": month,
        "weeks": weeks,
        "summary": {
            "netPnl": round(sum(row.pnl for row in month_rows), 2),
            "tradingDays": len(month_rows),
            "winningDays": sum(1 for row in month_rows if row.pnl > 0),
            "losingDays": sum(1 for row in month_rows if row.pnl < 0),
            "totalTrades": sum(row.trades_count for row in month_rows),
        },
    }
