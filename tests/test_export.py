import csv
import io

from scanlog.export import CSV_COLUMNS, render_csv

HEADER = "id,created_at,ip,ip_raw,x_forwarded_for,user_agent,fp_data"


def test_empty_export_is_header_only():
    assert render_csv([]).splitlines() == [HEADER]


def test_every_field_quoted_and_none_blank():
    out = render_csv([
        {"id": 7, "created_at": "2024-01-01T00:00:00.000+00:00", "ip": None,
         "ip_raw": "10.0.0.1", "x_forwarded_for": None, "headers": "{}",
         "user_agent": "", "fp_data": None},
    ])
    line = out.splitlines()[1]
    assert line == '"7","2024-01-01T00:00:00.000+00:00","","10.0.0.1","","",""'


def test_quotes_are_doubled_and_recoverable():
    fp = '{"userAgent":"X","language":"en"}'
    ua = 'Weird "quoted" agent, with comma'
    out = render_csv([
        {"id": 1, "created_at": "t", "ip": "1.2.3.4", "ip_raw": "1.2.3.4",
         "x_forwarded_for": None, "headers": '{"a":"b"}', "user_agent": ua, "fp_data": fp},
    ])
    assert '"{""userAgent"":""X"",""language"":""en""}"' in out

    rows = list(csv.reader(io.StringIO(out)))
    assert rows[0] == CSV_COLUMNS
    assert rows[1][5] == ua
    assert rows[1][6] == fp
    assert all(len(r) == 7 for r in rows)
    # serialized headers never leak into the export
    assert '""a""' not in out
