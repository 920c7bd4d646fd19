# app/services/document_pdf.py
"""
Rendu PDF d'une commande (facture, pro-forma, bon de livraison).

Mise en page volontairement minimale: une page A4, entête, bloc client,
une ligne par article, total.
"""
import io
from decimal import Decimal

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from app.models.document import DOCUMENT_LABELS, DocumentType
from app.models.order import OrderRead
from app.services.formatting import format_money


def document_filename(order: OrderRead, document_type: str) -> str:
    return f"{order.order_number or order.id}-{document_type or 'document'}.pdf"


def render_order_pdf(order: OrderRead, document_type: str, client_phone: str = "", client_address: str = "") -> bytes:
    buffer = io.BytesIO()
    c = canvas.Canvas(buffer, pagesize=A4)
    width, height = A4
    margin = 20 * mm
    y = height - margin

    # --- Entête ---
    c.setFont("Helvetica-Bold", 16)
    c.drawString(margin, y, "Molige ERP")
    y -= 8 * mm
    c.setFont("Helvetica", 11)
    label = DOCUMENT_LABELS.get(DocumentType(document_type), "Document") if document_type else "Document"
    c.drawString(margin, y, label.upper())
    y -= 10 * mm

    c.drawString(margin, y, f"Commande: {order.order_number}")
    y -= 6 * mm
    created = order.created_at.strftime("%d/%m/%Y") if order.created_at else "-"
    c.drawString(margin, y, f"Date: {created}")
    y -= 10 * mm

    # --- Client ---
    c.setFont("Helvetica-Bold", 12)
    c.drawString(margin, y, "Client:")
    y -= 6 * mm
    c.setFont("Helvetica", 11)
    c.drawString(margin, y, order.client_name or "-")
    y -= 5 * mm
    c.setFont("Helvetica", 10)
    if client_phone:
        c.drawString(margin, y, client_phone)
        y -= 5 * mm
    if client_address:
        c.drawString(margin, y, client_address)
        y -= 5 * mm
    y -= 6 * mm

    # --- Lignes ---
    c.setFont("Helvetica-Bold", 12)
    c.drawString(margin, y, "Articles")
    y -= 7 * mm
    c.setFont("Helvetica", 10)
    for line in order.lines:
        designation = line.article_designation or line.article_reference or "-"
        subtotal = Decimal(line.unit_price) * line.quantity
        c.drawString(
            margin,
            y,
            f"{designation} | Qte: {line.quantity} | PU: {format_money(line.unit_price)} | Total: {format_money(subtotal)}",
        )
        y -= 6 * mm
        if y < 30 * mm:
            c.showPage()
            c.setFont("Helvetica", 10)
            y = height - margin

    y -= 4 * mm
    c.setFont("Helvetica-Bold", 12)
    c.drawString(margin, y, f"Montant total: {format_money(order.total_amount)}")

    c.showPage()
    c.save()
    return buffer.getvalue()
