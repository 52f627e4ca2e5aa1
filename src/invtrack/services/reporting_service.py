from __future__ import annotations

import logging
from datetime import timedelta
from typing import Optional

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.table import Table, TableStyleInfo

from invtrack.domain.errors import ValidationError
from invtrack.domain.models import Batch, Product

log = logging.getLogger(__name__)


class ReportingService:
    def __init__(self, repo, ledger):
        self.repo = repo
        self.ledger = ledger

    def stock_summary(self) -> list[tuple[Product, int]]:
        return [(p, self.ledger.get_total_stock(p.id)) for p in self.repo.list_products()]

    def batch_details(self) -> list[tuple[Batch, Optional[Product]]]:
        products = {p.id: p for p in self.repo.list_products(include_deleted=True)}
        return [(b, products.get(b.product_id)) for b in self.ledger.get_all_active_batches()]

    def expiring_batches(self, within_days: int = 30) -> list[Batch]:
        if within_days < 0:
            raise ValidationError("Days must be >= 0.")
        cutoff = self.repo.clock() + timedelta(days=int(within_days))
        return self.repo.list_batches_expiring_before(cutoff)

    def export_batches_excel(self, path: str) -> None:
        wb = Workbook()

        def money(cell):
            cell.number_format = "#,##0.00"

        def bold_row(ws, r):
            for c in ws[r]:
                c.font = Font(bold=True)

        def set_widths(ws, widths: dict[str, int]):
            for col, w in widths.items():
                ws.column_dimensions[col].width = w

        def add_table(ws, name: str, start_row: int, start_col: int, end_row: int, end_col: int):
            ref = f"{get_column_letter(start_col)}{start_row}:{get_column_letter(end_col)}{end_row}"
            tab = Table(displayName=name, ref=ref)
            tab.tableStyleInfo = TableStyleInfo(
                name="TableStyleMedium9",
                showRowStripes=True,
                showColumnStripes=False,
            )
            ws.add_table(tab)

        # -------- 1) Stock Summary --------
        ws = wb.active
        ws.title = "Stock Summary"
        ws.append(["Product ID", "SKU", "Name", "Category", "Perishable", "Total Stock"])
        bold_row(ws, 1)
        for product, total in self.stock_summary():
            ws.append([
                product.id, product.sku, product.name,
                product.category.value, "yes" if product.is_perishable else "no", int(total),
            ])
        ws.freeze_panes = "A2"
        set_widths(ws, {"A": 12, "B": 16, "C": 34, "D": 14, "E": 12, "F": 12})
        if ws.max_row >= 2:
            add_table(ws, "StockSummary", 1, 1, ws.max_row, 6)

        # -------- 2) Active Batches --------
        ws2 = wb.create_sheet("Active Batches")
        ws2.append([
            "Batch ID", "Product ID", "SKU", "Product Name", "Supplier ID",
            "Qty", "Unit Cost", "Line Value", "Entry Date", "Expiration Date",
        ])
        bold_row(ws2, 1)

        out_row = 2
        for batch, product in self.batch_details():
            ws2.append([
                batch.id, batch.product_id,
                product.sku if product else "", product.name if product else "",
                batch.supplier_id, int(batch.quantity),
                float(batch.unit_cost), float(batch.unit_cost * batch.quantity),
                batch.entry_date.isoformat(sep=" ", timespec="seconds"),
                batch.expiration_date.date().isoformat() if batch.expiration_date else "",
            ])
            money(ws2[f"G{out_row}"])
            money(ws2[f"H{out_row}"])
            out_row += 1

        ws2.freeze_panes = "A2"
        set_widths(ws2, {
            "A": 10, "B": 12, "C": 16, "D": 34, "E": 12,
            "F": 8, "G": 14, "H": 14, "I": 22, "J": 16,
        })
        if ws2.max_row >= 2:
            add_table(ws2, "ActiveBatches", 1, 1, ws2.max_row, 10)

        wb.save(path)
        log.info("batches_report_exported path=%s batches=%s", path, out_row - 2)
