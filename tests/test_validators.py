import pytest

from medibook.shared.validators import (
    slot_minutes,
    validate_phone,
    validate_required_text,
    validate_time_slot,
)


class TestValidatePhone:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("(555) 123-4567", "+15551234567"),
            ("1-555-123-4567", "+15551234567"),
            ("+44 20 7946 0958", "+442079460958"),
        ],
    )
    def test_normalizes(self, raw, expected):
        assert validate_phone(raw) == expected

    @pytest.mark.parametrize("raw", ["12345", "+123", "555-1234-56789"])
    def test_rejects(self, raw):
        with pytest.raises(ValueError):
            validate_phone(raw)


class TestTimeSlots:
    @pytest.mark.parametrize(
        "raw,expected",
        [("9:30 am", "09:30 AM"), (" 12:00 PM ", "12:00 PM"), ("04:30 PM", "04:30 PM")],
    )
    def test_normalizes(self, raw, expected):
        assert validate_time_slot(raw) == expected

    @pytest.mark.parametrize("raw", ["", "13:00 PM", "09:60 AM", "0930 AM", "09:30"])
    def test_rejects(self, raw):
        with pytest.raises(ValueError):
            validate_time_slot(raw)

    def test_slot_minutes_orders_across_noon(self):
        labels = ["02:00 PM", "12:30 PM", "09:00 AM", "12:00 AM"]
        assert sorted(labels, key=slot_minutes) == ["12:00 AM", "09:00 AM", "12:30 PM", "02:00 PM"]


def test_required_text_strips():
    assert validate_required_text("  Ann ", "first_name") == "Ann"
    with pytest.raises(ValueError, match="first_name is required"):
        validate_required_text("   ", "first_name")
