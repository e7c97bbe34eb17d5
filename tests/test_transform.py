import pytest

from neoscatter.errors import DecodeError, ParseError
from neoscatter.transform import NeoRecord, to_record, enrich, filter_and_sort, build_records
from tests.conftest import REFERENCE_DATE


def _row(**kw):
    row = {"des": "2020 XA", "orbit_id": "3", "cd": "2020-Dec-10 00:00",
           "dist": "0.01", "v_rel": "10", "h": "20"}
    row.update(kw)
    return row


def _rec(des, current):
    r = NeoRecord(des, "1", 20.0, 10.0, 0.01, "2020-Dec-10 00:00")
    r.current_dist_ld = current
    return r


class TestEnrich:
    def test_worked_example(self):
        rec = enrich(to_record(_row()), REFERENCE_DATE)
        assert rec.closest_dist_ld == pytest.approx(3.89, abs=0.01)
        assert rec.closest_date == "2020-12-10"
        assert rec.days_to_closest == 8
        assert rec.days_signed == 8
        assert rec.ld_per_day == pytest.approx(2.248, abs=1e-3)
        assert rec.current_dist_ld == pytest.approx(21.87, abs=0.01)
        assert rec.orbital_lane == 3
        assert not rec.approach_passed

    def test_passed_approach_keeps_positive_day_count(self):
        rec = enrich(to_record(_row(cd="2020-Nov-30 10:00")), REFERENCE_DATE)
        assert rec.days_to_closest == 2
        assert rec.days_signed == -2
        assert rec.approach_passed

    def test_index_assigned_when_given(self):
        assert enrich(to_record(_row()), REFERENCE_DATE, index=4).id == 4

    def test_numbers_accepted_as_numbers(self):
        rec = to_record(_row(dist=0.01, v_rel=10, h=20))
        assert (rec.dist, rec.v_rel, rec.h) == (0.01, 10.0, 20.0)

    def test_non_numeric_raises(self):
        with pytest.raises(ParseError):
            to_record(_row(h="bright"))

    def test_missing_designation_raises(self):
        with pytest.raises(ParseError):
            to_record(_row(des=None))

    def test_bad_lane_raises(self):
        with pytest.raises(ParseError):
            enrich(to_record(_row(orbit_id="X")), REFERENCE_DATE)

    def test_extra_columns_carried(self):
        rec = to_record(_row(fullname="  (2020 XA)", v_inf="9.9"))
        assert rec.extra == {"fullname": "(2020 XA)", "v_inf": "9.9"}


class TestFilterAndSort:
    def test_threshold_is_exclusive_and_order_ascending(self):
        recs = [_rec("a", 19.9), _rec("b", 20.0), _rec("c", 3.0), _rec("d", 25.0), _rec("e", 3.0)]
        kept = filter_and_sort(recs, 20)
        assert [r.designation for r in kept] == ["c", "e", "a"]
        assert all(r.current_dist_ld < 20 for r in kept)
        assert [r.id for r in kept] == [0, 1, 2]

    def test_empty(self):
        assert filter_and_sort([], 20) == []


class TestBuildRecords:
    def test_pipeline_on_payload(self, cad_payload, capsys):
        recs = build_records(cad_payload, REFERENCE_DATE, 20)
        assert [r.designation for r in recs] == ["2020 VB", "2020 WE"]
        assert [r.id for r in recs] == [0, 1]
        assert "2020 BAD" in capsys.readouterr().out

    def test_threshold_40_keeps_worked_example(self, cad_payload):
        recs = build_records(cad_payload, REFERENCE_DATE, 40)
        assert [r.designation for r in recs] == ["2020 VB", "2020 WE", "2020 XA"]
        vals = [r.current_dist_ld for r in recs]
        assert vals == sorted(vals)

    def test_missing_field_fails_fast(self, cad_payload):
        i = cad_payload["fields"].index("v_rel")
        cad_payload["fields"][i] = "velocity"
        with pytest.raises(DecodeError):
            build_records(cad_payload, REFERENCE_DATE, 20)

    def test_field_order_follows_fields(self, cad_payload):
        # reversed column order must give the same result
        cad_payload["fields"] = list(reversed(cad_payload["fields"]))
        cad_payload["data"] = [list(reversed(r)) for r in cad_payload["data"]]
        recs = build_records(cad_payload, REFERENCE_DATE, 20)
        assert [r.designation for r in recs] == ["2020 VB", "2020 WE"]
