import pytest

from auction_extractor.colors import clean_color, detect_paint_to_sample
from auction_extractor.extractors import (
    BAT_EXTRACTORS,
    DEFAULT_EXTRACTORS,
    essentials_location,
    essentials_options_text,
    extract_exterior_color,
    extract_interior_color,
    extract_location,
    extract_options_text,
    extract_transmission,
    extract_vin,
    extractors_for,
    is_valid_vin,
    normalize_transmission,
    parse_location,
)
from auction_extractor.models import Location

# ====================
# VIN
# ====================


def test_vin_from_chassis_line(make_context, bat_sold_html):
    assert extract_vin(make_context(bat_sold_html)) == "WP0AC29994S692345"


def test_vin_from_label_value_pair(make_context, cab_site, cab_sold_html):
    assert extract_vin(make_context(cab_sold_html, cab_site)) == "WP0AC2A84NK289123"


def test_vin_with_wrong_manufacturer_prefix_is_ignored(make_context):
    html = "<html><body><h1>2004 Porsche 911 GT3</h1><p>VIN: 1HGCM82633A004352</p></body></html>"
    assert extract_vin(make_context(html)) is None


def test_vin_from_description(make_context):
    html = """
    <html><body><h1>2004 Porsche 911 GT3</h1>
    <div class="post-excerpt"><p>The chassis number WP0AC29994S692345 is stamped on the tub.</p></div>
    </body></html>
    """
    assert extract_vin(make_context(html)) == "WP0AC29994S692345"


def test_vin_label_in_comments_is_ignored(make_context):
    html = """
    <html><body><h1>2004 Porsche 911 GT3</h1>
    <div class="post-excerpt"><p>The chassis number WP0AC29994S692345 is stamped on the tub.</p></div>
    <div id="comments"><ul><li>VIN: WP0AC29985S693333</li></ul></div>
    </body></html>
    """
    assert extract_vin(make_context(html)) == "WP0AC29994S692345"


def test_is_valid_vin():
    assert is_valid_vin("WP0AC29994S692345")
    assert is_valid_vin("WP0AC29994S692345", r"WP[01]")
    assert not is_valid_vin("1HGCM82633A004352", r"WP[01]")
    assert not is_valid_vin("WP0AC29994S69234")
    assert not is_valid_vin("WP0AC29994S69234O")
    assert not is_valid_vin(None)


# ====================
# LOCATION
# ====================


def test_parse_location_with_zip():
    assert parse_location("Location: Palo Alto, California 94306") == Location("Palo Alto", "California", "94306")


def test_parse_location_without_zip():
    assert parse_location("Austin, TX") == Location("Austin", "TX", None)


def test_parse_location_rejects_garbage():
    assert parse_location("Contact seller") is None
    assert parse_location(None) is None


def test_essentials_location(make_context, bat_sold_html):
    assert essentials_location(make_context(bat_sold_html)) == Location("Palo Alto", "California", "94306")


def test_location_element(make_context, cab_site, cab_sold_html):
    assert extract_location(make_context(cab_sold_html, cab_site)) == Location("Austin", "TX", "78701")


def test_located_in_phrase(make_context, cab_site):
    html = """
    <html><body><div class="auction-title"><h1>2019 Porsche 911 GT3</h1></div>
    <div class="detail-body"><p>The car is located in Scottsdale, Arizona.</p></div>
    </body></html>
    """
    assert extract_location(make_context(html, cab_site)) == Location("Scottsdale", "Arizona", None)


# ====================
# COLORS
# ====================


def test_colors_from_essentials(make_context, bat_sold_html):
    ctx = make_context(bat_sold_html)
    assert extract_exterior_color(ctx) == "Guards Red"
    assert extract_interior_color(ctx) == "Black"


def test_colors_from_labels(make_context, cab_site, cab_sold_html):
    ctx = make_context(cab_sold_html, cab_site)
    assert extract_exterior_color(ctx) == "Python Green"
    assert extract_interior_color(ctx) == "Black"


def test_colors_from_description(make_context):
    html = """
    <html><body><h1>2004 Porsche 911 GT3</h1>
    <div class="post-excerpt"><p>This car is finished in Arctic Silver Metallic over Graphite Grey leather.</p></div>
    </body></html>
    """
    ctx = make_context(html)
    assert extract_exterior_color(ctx) == "Arctic Silver Metallic"
    assert extract_interior_color(ctx) == "Graphite Grey"


def test_paint_to_sample_essentials_line(make_context):
    html = """
    <html><body><h1>2022 Porsche 911 GT3</h1>
    <div class="essentials"><ul><li>Paint-To-Sample Mint Green Paint</li></ul></div>
    </body></html>
    """
    color = extract_exterior_color(make_context(html))
    assert detect_paint_to_sample(color) == ("Mint Green", True)


@pytest.mark.parametrize("color, expected", [
    ("PTS Oak Green Metallic", ("Oak Green Metallic", True)),
    ("Paint to Sample Rubystone Red", ("Rubystone Red", True)),
    ("Mexico Blue", ("Mexico Blue", True)),
    ("Guards Red", ("Guards Red", False)),
    (None, (None, False)),
])
def test_detect_paint_to_sample(color, expected):
    assert detect_paint_to_sample(color) == expected


def test_clean_color_rejects_filler():
    assert clean_color("the") is None
    assert clean_color("and Black") is None
    assert clean_color(" Black, ") == "Black"


# ====================
# TRANSMISSION
# ====================


@pytest.mark.parametrize("text, expected", [
    ("Six-Speed Manual Transaxle", "6-Speed Manual"),
    ("Seven-Speed PDK Transaxle", "7-Speed PDK"),
    ("6-speed manual", "6-Speed Manual"),
    ("Manual (6-Speed)", "6-Speed Manual"),
    ("PDK", "PDK"),
    ("Tiptronic S", "Tiptronic"),
    ("rebuilt engine", None),
    (None, None),
])
def test_normalize_transmission(text, expected):
    assert normalize_transmission(text) == expected


def test_transmission_from_essentials(make_context, bat_sold_html):
    assert extract_transmission(make_context(bat_sold_html)) == "6-Speed Manual"


def test_transmission_from_label(make_context, cab_site, cab_sold_html):
    assert extract_transmission(make_context(cab_sold_html, cab_site)) == "6-Speed Manual"


# ====================
# OPTIONS
# ====================


def test_essentials_options_skip_listing_facts(make_context, bat_sold_html):
    text = essentials_options_text(make_context(bat_sold_html))
    assert text == "Guards Red Paint; Black Leather Upholstery; Sport Chrono Package; Carbon-Ceramic Brakes"


def test_options_list(make_context, cab_site, cab_sold_html):
    text = extract_options_text(make_context(cab_sold_html, cab_site))
    assert text == "Full Bucket Seats; PCCB; Sport Chrono Package"


def test_options_absent(make_context):
    assert extract_options_text(make_context("<html><body><h1>2004 Porsche 911 GT3</h1></body></html>")) == ""


# ====================
# EXTRACTOR SETS
# ====================


def test_bat_substitutes_essentials_readers():
    assert extractors_for("bat") is BAT_EXTRACTORS
    assert BAT_EXTRACTORS.location is essentials_location
    assert BAT_EXTRACTORS.options is essentials_options_text
    assert BAT_EXTRACTORS.mileage is DEFAULT_EXTRACTORS.mileage


def test_other_sites_use_defaults():
    assert extractors_for("carsandbids") is DEFAULT_EXTRACTORS
    assert extractors_for("unknown") is DEFAULT_EXTRACTORS
