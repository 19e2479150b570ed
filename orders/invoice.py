"""
Invoice rendering as a single-page PDF.

The document is written directly as PDF 1.4 objects (catalog, pages,
page, Courier font, one content stream) with a correct xref table, so
no rendering engine is needed on the server.
"""
PAGE_WIDTH = 612
PAGE_HEIGHT = 792
LEFT = 50
LINE_HEIGHT = 16
MAX_ITEM_LINES = 30


def _escape(text):
    """Escape a string for a PDF literal; non-latin-1 characters become '?'."""
    text = str(text).replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")
    return text.encode("latin-1", errors="replace").decode("latin-1")


def _money(value, currency):
    return f"{currency} {value:,.2f}"


def invoice_lines(data):
    """Lay out invoice data as (font_size, x, text) rows, top to bottom."""
    currency = data["store"]["currency"]
    rows = [
        (20, LEFT, "INVOICE"),
        (11, LEFT, f"Invoice number: {data['invoice_number']}"),
        (11, LEFT, f"Date: {data['invoice_date']:%Y-%m-%d}"),
        (11, LEFT, ""),
        (12, LEFT, data["store"]["name"]),
    ]
    for value in (data["store"]["address"], data["store"]["email"], data["store"]["phone"]):
        if value:
            rows.append((10, LEFT, value))
    rows.append((10, LEFT, ""))
    rows.append((12, LEFT, "Bill to:"))
    rows.append((10, LEFT, data["customer"]["name"] or data["customer"]["email"]))
    if data["customer"]["email"]:
        rows.append((10, LEFT, data["customer"]["email"]))
    for line in data["billing_address"] or data["shipping_address"] or []:
        rows.append((10, LEFT, line))
    rows.append((10, LEFT, ""))
    rows.append((11, LEFT, "Qty  Item                                             Unit price        Total"))

    items = data["items"]
    for item in items[:MAX_ITEM_LINES]:
        name = item["product_name"]
        if item["variant_name"]:
            name = f"{name} - {item['variant_name']}"
        rows.append(
            (
                10,
                LEFT,
                f"{item['quantity']:>3}  {name[:48]:<48} "
                f"{_money(item['unit_price'], currency):>14} {_money(item['total'], currency):>14}",
            )
        )
    if len(items) > MAX_ITEM_LINES:
        rows.append((10, LEFT, f"... and {len(items) - MAX_ITEM_LINES} more items"))

    rows.append((10, LEFT, ""))
    for label, key in (
        ("Subtotal", "subtotal"),
        ("Tax", "tax"),
        ("Shipping", "shipping"),
        ("Discount", "discount"),
    ):
        rows.append((10, 350, f"{label + ':':<10} {_money(data['totals'][key], currency):>16}"))
    rows.append((12, 350, f"{'Total:':<10} {_money(data['totals']['total'], currency):>16}"))
    rows.append((10, LEFT, ""))
    rows.append((10, LEFT, f"Payment: {data['payment_method'] or 'N/A'} ({data['payment_status']})"))
    if data["tracking_number"]:
        rows.append((10, LEFT, f"Tracking number: {data['tracking_number']}"))
    rows.append((10, LEFT, "Thank you for your business!"))
    return rows


def _content_stream(rows):
    parts = ["BT"]
    y = PAGE_HEIGHT - 60
    for size, x, text in rows:
        # Absolute positioning per row via the text matrix.
        parts.append(f"/F1 {size} Tf")
        parts.append(f"1 0 0 1 {x} {y} Tm")
        parts.append(f"({_escape(text)}) Tj")
        y -= LINE_HEIGHT if size <= 12 else LINE_HEIGHT + 8
    parts.append("ET")
    return "\n".join(parts).encode("latin-1")


def render_invoice_pdf(data) -> bytes:
    """Build the invoice PDF for get_invoice_data() output."""
    stream = _content_stream(invoice_lines(data))
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        (
            f"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 {PAGE_WIDTH} {PAGE_HEIGHT}] "
            f"/Resources << /Font << /F1 4 0 R >> >> /Contents 5 0 R >>"
        ).encode("ascii"),
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Courier /Encoding /WinAnsiEncoding >>",
        b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream",
    ]

    out = bytearray(b"%PDF-1.4\n%\xe2\xe3\xcf\xd3\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % number + body + b"\nendobj\n"

    xref_offset = len(out)
    out += b"xref\n0 %d\n" % (len(objects) + 1)
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += b"%010d 00000 n \n" % offset
    out += (
        b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n"
        % (len(objects) + 1, xref_offset)
    )
    return bytes(out)
