"""CSV helpers shared by the export endpoints."""
import csv
import io

from django.http import HttpResponse
from django.utils import timezone


def render_csv(header, rows):
    """Render header + rows to a CSV string (values are quoted when needed)."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(header)
    for row in rows:
        writer.writerow(["" if value is None else value for value in row])
    return buffer.getvalue()


def csv_response(content, prefix):
    """Wrap CSV text in an attachment response named {prefix}-{YYYY-MM-DD}.csv."""
    filename = f"{prefix}-{timezone.now().date().isoformat()}.csv"
    response = HttpResponse(content, content_type="text/csv; charset=utf-8")
    response["Content-Disposition"] = f'attachment; filename="{filename}"'
    return response
