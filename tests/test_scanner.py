from auction_extractor.car_regexes import DOLLAR_REGEX, MILEAGE_REGEX
from auction_extractor.models import REGION_TITLE
from auction_extractor.scanner import pick_nearest_year, scan, year_positions


def test_scan_reads_thousands_suffix():
    candidates = scan("8k-Mile 2004 Porsche 911 GT3", [MILEAGE_REGEX], REGION_TITLE)
    assert len(candidates) == 1
    assert candidates[0].value == 8000
    assert candidates[0].source_region == REGION_TITLE
    assert candidates[0].raw_match_text == "8k-Mile"
    assert candidates[0].position_index == 0


def test_scan_reads_comma_grouped_numbers():
    candidates = scan("1,234-Mile 2022 Porsche 911 GT3", [MILEAGE_REGEX])
    assert [c.value for c in candidates] == [1234]


def test_scan_ignores_unitless_numbers():
    text = "It produces 380 horsepower, the price is $175k, Lot #97,425"
    assert scan(text, [MILEAGE_REGEX]) == []


def test_scan_dollar_amounts():
    candidates = scan("Bidding reached $175k before the $182,500 sale", [DOLLAR_REGEX])
    assert [c.value for c in candidates] == [175000, 182500]


def test_scan_empty_text():
    assert scan("", [MILEAGE_REGEX]) == []


def test_scan_keeps_context():
    candidates = scan("The odometer shows 12,300 miles today", [MILEAGE_REGEX], context_chars=10)
    assert "12,300 miles" in candidates[0].context


def test_year_positions():
    assert year_positions("2004 GT3, serviced 2019") == [0, 19]


def test_pick_nearest_year_prefers_candidate_by_the_year():
    text = "This 2004 GT3 shows 12,300 miles. The engine was rebuilt at 45,000 miles by the previous owner."
    chosen = pick_nearest_year(scan(text, [MILEAGE_REGEX]), text)
    assert chosen.value == 12300


def test_pick_nearest_year_without_years_takes_first():
    text = "Shows 12,300 miles. Rebuilt at 45,000 miles."
    chosen = pick_nearest_year(scan(text, [MILEAGE_REGEX]), text)
    assert chosen.value == 12300


def test_pick_nearest_year_no_candidates():
    assert pick_nearest_year([], "2004 Porsche") is None
