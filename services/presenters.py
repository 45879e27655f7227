"""
Output formats for an expense report: JSON payload, CSV export and the HTML
document that Gotenberg turns into the PDF report.
"""
from __future__ import annotations

import csv
import html
from datetime import date
from io import StringIO
from typing import Any, Dict, List, Sequence

from bs4 import BeautifulSoup

from services.expense_normalizer import Expense
from services.expense_report import ExpenseReport
from services.field_resolver import parse_amount

UTF8_BOM = "\ufeff"
TOTAL_LABEL = "ИТОГО:"
NBSP = "\u00a0"

CSV_HEADERS = [
    "deal_id",
    "Статус",
    "Статья расходов",
    "Бренд",
    "Контрагент",
    "Тип платежа",
    "Менеджер",
    "Сумма",
    "Доп.стоимость",
    "Финальная стоимость",
    "Справедливая стоимость",
    "Суть",
    "Ссылка на сделку",
    "Создатель",
    "Валюта",
    "deal_name",
]
CSV_TOTAL_LABEL_COLUMN = CSV_HEADERS.index("Доп.стоимость")
CSV_TOTAL_COLUMN = CSV_HEADERS.index("Финальная стоимость")

RU_MONTHS = [
    "января",
    "февраля",
    "марта",
    "апреля",
    "мая",
    "июня",
    "июля",
    "августа",
    "сентября",
    "октября",
    "ноября",
    "декабря",
]

STATUS_COLORS = (
    (("оплачен", "paid"), "#10B981"),
    (("ожида", "pending"), "#F59E0B"),
    (("отмен", "cancel"), "#EF4444"),
)
DEFAULT_STATUS_COLOR = "#94A3B8"


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------

def expenses_payload(report: ExpenseReport) -> Dict[str, Any]:
    return {
        "dealId": report.deal_id,
        "dealName": report.deal_name,
        "expenses": [expense.to_dict() for expense in report.expenses],
        "total": report.total,
    }


# ---------------------------------------------------------------------------
# CSV
# ---------------------------------------------------------------------------

def _money(value: float) -> str:
    # + 0.0 turns -0.0 into 0.0
    return f"{value + 0.0:.2f}"


def csv_row(expense: Expense) -> List[str]:
    """One export row. Export rows identify the parent deal, not the linked one."""
    return [
        expense.parent_deal_id,
        expense.status,
        expense.category,
        expense.brand,
        expense.contractor.display_name,
        expense.payment_type,
        expense.manager,
        _money(expense.amount),
        _money(expense.additional_cost),
        _money(expense.final_cost),
        _money(expense.fair_cost),
        expense.description,
        expense.deal_link,
        expense.creator,
        expense.currency,
        expense.parent_deal_name,
    ]


def build_csv(expenses: Sequence[Expense], total: float) -> str:
    """CSV text prefixed with a UTF-8 BOM so Excel detects the encoding."""
    output = StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for expense in expenses:
        writer.writerow(csv_row(expense))

    total_row = [""] * len(CSV_HEADERS)
    total_row[CSV_TOTAL_LABEL_COLUMN] = TOTAL_LABEL
    total_row[CSV_TOTAL_COLUMN] = _money(total)
    writer.writerow(total_row)
    return UTF8_BOM + output.getvalue().rstrip("\n")


def csv_filename(deal_id: str, today: date) -> str:
    return f"expenses_{deal_id}_{today.isoformat()}.csv"


def pdf_filename(deal_id: str) -> str:
    return f"expenses_{deal_id}.pdf"


# ---------------------------------------------------------------------------
# HTML / PDF
# ---------------------------------------------------------------------------

def format_number(value: Any) -> str:
    """ru-RU money formatting: 1234567.5 -> '1 234 567,50' (no-break space groups)."""
    if value is None or value == "":
        return "0,00"
    number = parse_amount(value) + 0.0
    return f"{number:,.2f}".replace(",", NBSP).replace(".", ",")


def format_report_date(day: date) -> str:
    return f"{day.day} {RU_MONTHS[day.month - 1]} {day.year} г."


def status_color(status: str) -> str:
    lowered = (status or "").lower()
    for needles, color in STATUS_COLORS:
        if any(needle in lowered for needle in needles):
            return color
    return DEFAULT_STATUS_COLOR


def strip_markup(text: str) -> str:
    """Plain text of a rich-text description."""
    if not text:
        return ""
    return BeautifulSoup(text, "html.parser").get_text()


def _h(value: Any) -> str:
    return html.escape("" if value is None else str(value))


_CELL = 'style="padding: 10px; font-size: 12px; text-align: {align};{border}"'
_BORDER = " border-right: 1px solid #E2E8F0;"


def _td(value: str, align: str = "left", last: bool = False) -> str:
    style = _CELL.format(align=align, border="" if last else _BORDER)
    return f"<td {style}>{value}</td>"


def _expense_row(expense: Expense) -> str:
    badge = (
        f'<span style="background-color: {status_color(expense.status)}; color: #FFFFFF; '
        f'padding: 4px 8px; border-radius: 4px; font-weight: 600; display: inline-block;">'
        f"{_h(expense.status)}</span>"
    )
    cells = [
        _td(_h(expense.deal_id)),
        _td(_h(expense.deal_name)),
        _td(_h(strip_markup(expense.description))),
        _td(badge, align="center"),
        _td(_h(expense.category)),
        _td(_h(expense.brand)),
        _td(_h(expense.contractor.display_name)),
        _td(_h(expense.payment_type)),
        _td(_h(expense.manager)),
        _td(_h(expense.creator)),
        _td(f"{format_number(expense.amount)} {_h(expense.currency)}", align="right"),
        _td(format_number(expense.additional_cost), align="right"),
        _td(format_number(expense.final_cost), align="right"),
        _td(format_number(expense.fair_cost), align="right", last=True),
    ]
    return '<tr style="border-bottom: 1px solid #E2E8F0;">' + "".join(cells) + "</tr>"


def _total_row(total: float) -> str:
    cell = "padding: 12px; font-size: 14px; text-align: right; font-weight: 700;"
    return (
        '<tr style="background-color: #F1F5F9; border-top: 2px solid #E2E8F0;">'
        f'<td colspan="10" style="{cell}{_BORDER}">{TOTAL_LABEL}</td>'
        f'<td style="{cell}{_BORDER}"></td>'
        f'<td style="{cell}{_BORDER}"></td>'
        f'<td style="{cell}{_BORDER} color: #3B82F6;">{format_number(total)}</td>'
        f'<td style="{cell}"></td>'
        "</tr>"
    )


HTML_COLUMNS = [
    "deal_id",
    "Название сделки",
    "Суть",
    "Статус",
    "Статья расходов",
    "Бренд",
    "Контрагент",
    "Тип платежа",
    "Менеджер",
    "Создатель",
    "Сумма",
    "Доп.стоимость",
    "Финальная стоимость",
    "Справедливая стоимость",
]

REPORT_STYLES = """
* { margin: 0; padding: 0; box-sizing: border-box; }
body { font-family: Arial, sans-serif; color: #1E293B; background: #FFFFFF; padding: 20px; line-height: 1.6; }
.container { max-width: 1200px; margin: 0 auto; }
.header { margin-bottom: 32px; }
.title { font-size: 24px; font-weight: 700; margin-bottom: 8px; }
.subtitle { font-size: 14px; color: #64748B; margin-bottom: 16px; }
.summary { display: grid; grid-template-columns: 1fr 1fr 1fr; gap: 16px; margin-bottom: 32px; }
.summary-card { background: #F8FAFC; border: 1px solid #E2E8F0; border-radius: 8px; padding: 16px; }
.summary-card-label { font-size: 11px; font-weight: 600; text-transform: uppercase; color: #64748B; margin-bottom: 8px; }
.summary-card-value { font-size: 20px; font-weight: 700; }
table { width: 100%; border-collapse: collapse; background: #FFFFFF; }
thead { background: #F1F5F9; border-bottom: 1px solid #E2E8F0; }
th { padding: 12px; text-align: left; font-size: 11px; font-weight: 600; color: #64748B;
     text-transform: uppercase; white-space: nowrap; border-right: 1px solid #E2E8F0; }
th:last-child { border-right: none; }
footer { font-size: 12px; color: #94A3B8; text-align: center; margin-top: 32px; padding-top: 16px;
         border-top: 1px solid #E2E8F0; }
@media print { body { padding: 0; } .container { max-width: 100%; } }
"""


def _summary_card(label: str, value: str) -> str:
    return (
        '<div class="summary-card">'
        f'<div class="summary-card-label">{label}</div>'
        f'<div class="summary-card-value">{value}</div>'
        "</div>"
    )


def build_report_html(deal_name: str, expenses: Sequence[Expense], total: float, today: date) -> str:
    """Self-contained HTML report: header, three summary cards and the expense table."""
    average = total / max(1, len(expenses))
    head_cells = "".join(f"<th>{_h(column)}</th>" for column in HTML_COLUMNS)
    rows = "".join(_expense_row(expense) for expense in expenses)
    summary = "".join(
        [
            _summary_card("Общая сумма", f"₽{format_number(total)}"),
            _summary_card("Записей", str(len(expenses))),
            _summary_card("Средняя сумма", f"₽{format_number(average)}"),
        ]
    )
    return f"""<!DOCTYPE html>
<html lang="ru">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>Расходы - {_h(deal_name)}</title>
<style>{REPORT_STYLES}</style>
</head>
<body>
<div class="container">
<div class="header">
<h1 class="title">Расходы по проекту</h1>
<div class="subtitle">&quot;{_h(deal_name)}&quot;</div>
<div class="subtitle">Дата отчета: {format_report_date(today)}</div>
</div>
<div class="summary">{summary}</div>
<div class="table-container">
<table>
<thead><tr>{head_cells}</tr></thead>
<tbody>{rows}{_total_row(total)}</tbody>
</table>
</div>
<footer><p>Этот отчет был сгенерирован автоматически</p></footer>
</div>
</body>
</html>
"""
