"""CSV export utilities."""
import csv

from django.http import HttpResponse


def rows_to_csv_response(rows, columns, filename):
    """Convert an iterable of objects or dicts to a CSV HttpResponse.

    Args:
        rows: any iterable (queryset, list of dicts, generator).
        columns: list of (field_name_or_callable, header_label) tuples.
            If field_name_or_callable is a string, the value is read with
            ``row[field]`` for dicts and ``getattr(row, field)`` otherwise.
            If it's callable, it's called with the row.
        filename: download filename (without extension)
    """
    response = HttpResponse(content_type="text/csv; charset=utf-8")
    response["Content-Disposition"] = f'attachment; filename="{filename}.csv"'
    # UTF-8 BOM for Excel compatibility
    response.write("\ufeff")

    writer = csv.writer(response)
    writer.writerow([col[1] for col in columns])

    if hasattr(rows, "iterator"):
        rows = rows.iterator()

    for row in rows:
        values = []
        for field, _ in columns:
            if callable(field):
                val = field(row)
            elif isinstance(row, dict):
                val = row.get(field, "")
            else:
                val = getattr(row, field, "")
            values.append(str(val) if val is not None else "")
        writer.writerow(values)

    return response
