"""Tests for the timetable page parser."""

from recurrence import build_calendar_model
from timetable.parser import TimetableParser, parse_timetable_html


PAGE = """
<html><body>
<table class="table table-bordered">
  <tbody>
    <tr class="k-table-head">
      <td>STT</td><td>Thứ</td><td>Ngày</td><td>Sáng</td><td>Chiều</td><td>Tối</td>
    </tr>
    <tr>
      <td>1</td><td>Thứ 2</td><td>02/09/2024</td>
      <td>
        1. (1,2,3) - Toán cao cấp (Lớp: 20241MT1001001)<br>
        GV: Nguyễn Văn A (0123456789 - Khoa CNTT)<br>
        (P.301 - Nhà A - Cơ sở 1)<br>
        2. (4,5) - Vật lý (Lớp: 20241PH1001002)<br>
        GV: Trần B (Khoa Lý)<br>
        (P.201)
      </td>
      <td></td>
      <td></td>
    </tr>
    <tr>
      <td>2</td><td>Thứ 3</td><td>03/09/2024</td>
      <td></td>
      <td>1. (7,8) - Tiếng Anh (Lớp: 20241EN1001003)</td>
      <td>Nghỉ</td>
    </tr>
  </tbody>
</table>
</body></html>
"""


class TestTimetableParser:
    def test_parses_blocks(self):
        records = TimetableParser(PAGE).parse()
        assert len(records) == 3
        first, second, third = records
        assert first == {
            "date": "02/09/2024",
            "periods": "1,2,3",
            "course": "Toán cao cấp",
            "class_code": "20241MT1001001",
            "instructor": "Nguyễn Văn A",
            "department": "Khoa CNTT",
            "phone": "0123456789",
            "location": "P.301 - Nhà A",
        }
        assert second["class_code"] == "20241PH1001002"
        assert second["instructor"] == "Trần B"
        assert second["department"] == "Khoa Lý"
        assert second["phone"] is None
        assert second["location"] == "P.201"
        assert third["date"] == "03/09/2024"
        assert third["periods"] == "7,8"
        assert third["instructor"] is None
        assert third["location"] is None

    def test_page_without_table(self):
        assert parse_timetable_html("<html><body><p>Login</p></body></html>") == []

    def test_records_feed_the_pipeline(self):
        model = build_calendar_model(parse_timetable_html(PAGE))
        assert model.warnings == []
        assert len(model.flat_events) == 3
        codes = [f.occurrence.class_code for f in model.flat_events]
        assert codes == ["20241EN1001003", "20241MT1001001", "20241PH1001002"]
