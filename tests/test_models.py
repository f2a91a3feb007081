from datetime import date

import pytest

from auction_extractor.models import ACTIVE, SOLD, UNKNOWN, ListingDetail, Location, RawPage

URL = "https://bringatrailer.com/listing/2004-porsche-911-gt3-12/"


def test_sold_listing_needs_a_price():
    with pytest.raises(ValueError):
        ListingDetail(title="2004 Porsche 911 GT3", source_url=URL, status=SOLD, source="bat")


def test_active_listing_cannot_carry_sold_date():
    with pytest.raises(ValueError):
        ListingDetail(title="2004 Porsche 911 GT3", source_url=URL, status=ACTIVE, source="bat",
                      sold_date=date(2022, 8, 29))


def test_unknown_status_is_not_a_record():
    with pytest.raises(ValueError):
        ListingDetail(title="2004 Porsche 911 GT3", source_url=URL, status=UNKNOWN, source="bat")


@pytest.mark.parametrize("mileage", [0, -5, 500_000])
def test_mileage_bounds(mileage):
    with pytest.raises(ValueError):
        ListingDetail(title="2004 Porsche 911 GT3", source_url=URL, status=ACTIVE, source="bat", mileage=mileage)


def test_empty_title():
    with pytest.raises(ValueError):
        ListingDetail(title="", source_url=URL, status=ACTIVE, source="bat")


def test_to_dict():
    listing = ListingDetail(
        title="2004 Porsche 911 GT3", source_url=URL, status=SOLD, source="bat", price=112000,
        sold_date=date(2022, 8, 29), location=Location("Palo Alto", "California", "94306"),
    )
    data = listing.to_dict()
    assert data["sold_date"] == "2022-08-29"
    assert data["location"] == {"city": "Palo Alto", "state": "California", "zip": "94306"}
    assert data["options_normalized"] == []


def test_raw_page_type():
    with pytest.raises(ValueError):
        RawPage(html="<html></html>", url=URL, page_type="gallery")
