import json
import logging

import pytest

from auction_extractor import cli


@pytest.fixture(autouse=True)
def isolated_cli(monkeypatch, tmp_path):
    monkeypatch.delenv("CLASSIFIER_API_KEY", raising=False)
    monkeypatch.chdir(tmp_path)
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)


def test_extracts_detail_pages(tmp_path, bat_sold_html, bat_active_html, capsys):
    pages = tmp_path / "pages"
    pages.mkdir()
    (pages / "gt3.html").write_text(bat_sold_html, encoding="utf-8")
    (pages / "gt3rs.html").write_text(bat_active_html, encoding="utf-8")
    (pages / "empty.html").write_text("<html><body></body></html>", encoding="utf-8")
    output = tmp_path / "listings.json"

    exit_code = cli.main([
        "--source", "bat", "--input", str(pages), "--output", str(output), "--no-classifier",
    ])

    assert exit_code == 0
    listings = json.loads(output.read_text())["listings"]
    assert sorted(item["status"] for item in listings) == ["active", "sold"]
    out = capsys.readouterr().out
    assert "EXTRACTION REPORT" in out
    assert "empty_title: 1" in out


def test_only_sold(tmp_path, bat_sold_html, bat_active_html):
    pages = tmp_path / "pages"
    pages.mkdir()
    (pages / "gt3.html").write_text(bat_sold_html, encoding="utf-8")
    (pages / "gt3rs.html").write_text(bat_active_html, encoding="utf-8")
    output = tmp_path / "sold.jsonl"

    assert cli.main(["--source", "bat", "--input", str(pages), "--output", str(output), "--only-sold"]) == 0
    lines = output.read_text().splitlines()
    assert len(lines) == 1
    assert json.loads(lines[0])["price"] == 112000


def test_search_pages(tmp_path):
    page = tmp_path / "results.html"
    page.write_text("""
    <html><body><ul>
      <li class="auction-item"><a href="/auctions/a1/2019-porsche-911-gt3-rs">2019 Porsche 911 GT3 RS</a>
        <span class="sold-for">Sold for $215,000</span></li>
      <li class="auction-item"><a href="/auctions/b2/2020-porsche-macan">2020 Porsche Macan</a>
        <span class="sold-for">Sold for $41,000</span></li>
    </ul></body></html>
    """, encoding="utf-8")
    output = tmp_path / "results.csv"

    assert cli.main(["--source", "carsandbids", "--input", str(page), "--page-type", "search",
                     "--output", str(output)]) == 0
    rows = output.read_text().splitlines()
    assert rows[0].startswith("detail_url,")
    assert len(rows) == 2
    assert "https://carsandbids.com/auctions/a1/2019-porsche-911-gt3-rs" in rows[1]


def test_max_pages_prints_search_urls(capsys):
    assert cli.main(["--source", "bat", "--max-pages", "2"]) == 0
    urls = [line for line in capsys.readouterr().out.splitlines() if line.startswith("http")]
    assert urls == ["https://bringatrailer.com/porsche/", "https://bringatrailer.com/porsche/page/2/"]


def test_create_config(tmp_path):
    path = tmp_path / "my_config.json"
    assert cli.main(["--create-config", str(path)]) == 0
    assert json.loads(path.read_text())["classifier_enabled"] is True


def test_unknown_source(capsys):
    assert cli.main(["--source", "ebay", "--max-pages", "1"]) == 1
    assert "Unknown source" in capsys.readouterr().err


def test_bad_config_file(tmp_path, capsys):
    config = tmp_path / "bad.json"
    config.write_text("{oops")
    assert cli.main(["--source", "bat", "--config", str(config)]) == 1
    assert "Error loading config file" in capsys.readouterr().err


def test_missing_source_is_a_usage_error():
    with pytest.raises(SystemExit):
        cli.main(["--input", "pages"])


def test_excluded_models_are_counted(tmp_path, bat_sold_html, capsys):
    pages = tmp_path / "pages"
    pages.mkdir()
    (pages / "gt3.html").write_text(bat_sold_html, encoding="utf-8")
    (pages / "cayenne.html").write_text(
        bat_sold_html.replace("2004 Porsche 911 GT3", "2020 Porsche Cayenne Turbo"), encoding="utf-8")
    output = tmp_path / "listings.jsonl"

    assert cli.main(["--source", "bat", "--input", str(pages), "--output", str(output), "--no-classifier"]) == 0
    assert len(output.read_text().splitlines()) == 1
    assert "excluded_model: 1" in capsys.readouterr().out
