import csv
import io

# the serialized request headers are left out of the export on purpose
CSV_COLUMNS = [
    "id",
    "created_at",
    "ip",
    "ip_raw",
    "x_forwarded_for",
    "user_agent",
    "fp_data",
]


def render_csv(rows) -> str:
    """
    Header line unquoted, then every field quote-wrapped with inner quotes
    doubled. None becomes an empty quoted field.
    """
    buf = io.StringIO()
    buf.write(",".join(CSV_COLUMNS) + "\n")

    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for row in rows:
        writer.writerow(
            ["" if row.get(col) is None else row[col] for col in CSV_COLUMNS]
        )
    return buf.getvalue()
