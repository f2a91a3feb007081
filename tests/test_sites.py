import json
from dataclasses import replace

import pytest

from auction_extractor.sites import (
    BRING_A_TRAILER,
    CARS_AND_BIDS,
    PAGINATION_OFFSET,
    SITE_CONFIGS,
    build_registry,
    build_search_urls,
    get_site_config,
    load_site_configs,
    site_from_dict,
)


def test_builtin_sites():
    assert set(SITE_CONFIGS) == {"bat", "carsandbids", "pcarmarket"}
    assert get_site_config("BAT") is BRING_A_TRAILER


def test_unknown_source():
    with pytest.raises(ValueError):
        get_site_config("ebay")


def test_path_pagination():
    assert build_search_urls(BRING_A_TRAILER, max_pages=2) == [
        "https://bringatrailer.com/porsche/",
        "https://bringatrailer.com/porsche/page/2/",
    ]


def test_query_pagination_keeps_existing_query():
    urls = build_search_urls(CARS_AND_BIDS, max_pages=2)
    assert urls == [
        "https://carsandbids.com/search/porsche",
        "https://carsandbids.com/search/porsche?page=2",
        "https://carsandbids.com/past-auctions?q=porsche",
        "https://carsandbids.com/past-auctions?q=porsche&page=2",
    ]


def test_offset_pagination():
    site = site_from_dict({
        "source": "example",
        "name": "Example Auctions",
        "base_url": "https://auctions.example.com/",
        "search_paths": ["/results"],
        "pagination": {"style": "offset", "page_size": 24},
    })
    assert site.pagination.style == PAGINATION_OFFSET
    assert site.pagination.param == "offset"
    assert build_search_urls(site, max_pages=3)[-1] == "https://auctions.example.com/results?offset=48"


def test_site_from_dict_rejects_bad_entries():
    with pytest.raises(ValueError):
        site_from_dict({"source": "x", "name": "X"})
    with pytest.raises(ValueError):
        site_from_dict({"source": "x", "name": "X", "base_url": "https://x.com", "selectors": {"bogus": "a"}})
    with pytest.raises(ValueError):
        site_from_dict({"source": "x", "name": "X", "base_url": "ftp://x.com"})


def test_min_price_must_be_at_least_one():
    with pytest.raises(ValueError):
        replace(CARS_AND_BIDS, min_price=0)
    with pytest.raises(ValueError):
        site_from_dict({"source": "x", "name": "X", "base_url": "https://x.com", "min_price": 0})
    assert replace(CARS_AND_BIDS, min_price=1).min_price == 1


def test_load_site_configs_overrides_builtin(tmp_path):
    sites_file = tmp_path / "sites.json"
    sites_file.write_text(json.dumps({"sites": [{
        "source": "bat",
        "name": "Bring a Trailer (mirror)",
        "base_url": "https://bat.example.com",
        "min_price": 20000,
        "selectors": {"title": ["h1.title"], "essentials": ".essentials"},
    }]}))

    registry = build_registry(str(sites_file))
    site = registry["bat"]
    assert site.name == "Bring a Trailer (mirror)"
    assert site.min_price == 20000
    assert site.selectors.title == ("h1.title",)
    assert site.selectors.essentials == (".essentials",)
    assert registry["carsandbids"] is CARS_AND_BIDS


def test_load_site_configs_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_site_configs(str(tmp_path / "missing.json"))

    bad = tmp_path / "bad.json"
    bad.write_text("{not json")
    with pytest.raises(ValueError):
        load_site_configs(str(bad))
