from datetime import date

from auction_extractor.models import ACTIVE, SOLD, ListingDetail
from auction_extractor.sites import BRING_A_TRAILER
from auction_extractor.validator import DataValidator, ExtractionReport


def _listing(**overrides):
    fields = dict(
        title="2019 Porsche 911 GT3 RS",
        source_url="https://bringatrailer.com/listing/2019-porsche-911-gt3-rs-7/",
        status=SOLD,
        source="bat",
        price=285000,
        sold_date=date(2023, 5, 2),
        mileage=4200,
        year=2019,
        vin="WP0AF2A93KS164123",
        model="911",
        trim="GT3 RS",
    )
    fields.update(overrides)
    return ListingDetail(**fields)


def test_clean_listing_is_valid():
    assert DataValidator.validate_listing(_listing(), BRING_A_TRAILER) == (True, [])


def test_price_ceiling():
    is_valid, issues = DataValidator.validate_listing(_listing(price=28_500_000))
    assert not is_valid
    assert any("maximum" in issue for issue in issues)


def test_trim_before_it_existed():
    listing = _listing(title="2020 Porsche 718 Cayman GT4 RS", year=2020, model="718 Cayman", trim="GT4 RS",
                       price=190000)
    is_valid, issues = DataValidator.validate_listing(listing)
    assert not is_valid
    assert "GT4 RS did not exist in 2020" in issues


def test_718_title_before_2017():
    listing = _listing(title="2015 Porsche 718 Boxster", year=2015, model="718 Boxster", trim=None, price=40000)
    assert not DataValidator.validate_listing(listing)[0]

    pre_718 = _listing(title="2015 Porsche Cayman GTS", year=2015, model="718 Cayman", trim="GTS", price=60000)
    assert DataValidator.validate_listing(pre_718)[0]


def test_vin_prefix_mismatch():
    is_valid, issues = DataValidator.validate_listing(_listing(vin="1HGCM82633A004352"), BRING_A_TRAILER)
    assert not is_valid
    assert any("prefix" in issue for issue in issues)


def test_low_price_for_trim_is_only_a_warning():
    is_valid, issues = DataValidator.validate_listing(_listing(price=95000))
    assert is_valid
    assert issues[0].startswith("WARNING:")


def test_sold_without_date_warning():
    is_valid, issues = DataValidator.validate_listing(_listing(sold_date=None))
    assert is_valid
    assert "WARNING: Sold listing without a sold date" in issues



def test_vin_model_year_mismatch_warning():
    is_valid, issues = DataValidator.validate_listing(_listing(vin="WP0AF2A93GS164123"))
    assert is_valid
    assert "WARNING: VIN model year 2016 doesn't match listing year 2019" in issues

    assert DataValidator.validate_listing(_listing(year=2020, title="2020 Porsche 911 GT3 RS"))[0]

def test_active_listing_has_no_sale_warnings():
    listing = _listing(status=ACTIVE, price=None, sold_date=None)
    assert DataValidator.validate_listing(listing) == (True, [])


def test_extraction_report_tallies():
    report = ExtractionReport()
    report.add_extracted(_listing())
    report.add_extracted(_listing(status=ACTIVE, price=None, sold_date=None))
    report.add_extracted(_listing(price=95000), True, ["WARNING: Price $95,000 seems low for GT3 RS"])
    report.add_rejected("status_unknown")
    report.add_rejected("status_unknown")
    report.add_rejected("empty_title")
    report.add_failure()

    summary = report.to_dict()
    assert summary["pages"] == 7
    assert summary["extracted"] == 3
    assert (summary["sold"], summary["active"]) == (2, 1)
    assert summary["rejected"] == {"status_unknown": 2, "empty_title": 1}
    assert report.total_rejected == 3
    assert summary["failed"] == 1
    assert summary["issues"] == {"WARNING: Price $X seems low for GT3 RS": 1}


def test_print_report(capsys):
    report = ExtractionReport()
    report.add_rejected("sold_without_price")
    report.print_report()
    out = capsys.readouterr().out
    assert "EXTRACTION REPORT" in out
    assert "sold_without_price: 1" in out
