"""
Shared fixtures: saved auction pages and page-context builders.
"""

from datetime import date
from unittest.mock import Mock

import pytest

from auction_extractor.context import build_page_context
from auction_extractor.sites import BRING_A_TRAILER, CARS_AND_BIDS

TODAY = date(2024, 6, 1)

BAT_SOLD_PAGE = """
<html>
<head>
  <title>2004 Porsche 911 GT3 for sale on BaT Auctions</title>
  <link rel="canonical" href="https://bringatrailer.com/listing/2004-porsche-911-gt3-12/">
</head>
<body>
  <h1 class="listing-title">2004 Porsche 911 GT3</h1>
  <div class="essentials">
    <ul>
      <li>Chassis: WP0AC29994S692345</li>
      <li>8k Miles</li>
      <li>3.6-Liter Flat-Six</li>
      <li>Six-Speed Manual Transaxle</li>
      <li>Guards Red Paint</li>
      <li>Black Leather Upholstery</li>
      <li>Sport Chrono Package</li>
      <li>Carbon-Ceramic Brakes</li>
      <li>Location: Palo Alto, California 94306</li>
      <li>Private Party or Dealer: Private Party</li>
    </ul>
  </div>
  <div class="post-excerpt">
    <p>This 2004 Porsche 911 GT3 is finished in Guards Red over Black leather.</p>
  </div>
  <div class="listing-available-info">Sold for USD $112,000 on 8/29/22</div>
  <div id="comments">
    <p>Mine had 186,000 miles on it when I sold it.</p>
    <p>A similar car sold for $64,000 last year.</p>
  </div>
</body>
</html>
"""

BAT_ACTIVE_PAGE = """
<html>
<body>
  <h1 class="listing-title">2019 Porsche 911 GT3 RS Weissach</h1>
  <div class="listing-available-info">Current Bid: $150,000</div>
  <button class="bid-button">Place Bid</button>
  <aside class="sidebar">
    <p>Similar car sold for $200,000</p>
  </aside>
</body>
</html>
"""

CARS_AND_BIDS_SOLD_PAGE = """
<html>
<head>
  <meta property="og:url" content="https://carsandbids.com/auctions/rw1x/2022-porsche-718-cayman-gt4">
  <meta property="auction:end_date" content="2023-03-14T18:00:00Z">
</head>
<body>
  <div class="auction-title"><h1>2022 Porsche 718 Cayman GT4</h1></div>
  <dl class="quick-facts">
    <dt>Mileage</dt><dd>4,150</dd>
    <dt>VIN</dt><dd>WP0AC2A84NK289123</dd>
    <dt>Transmission</dt><dd>Manual (6-Speed)</dd>
    <dt>Exterior Color</dt><dd>Python Green</dd>
    <dt>Interior Color</dt><dd>Black</dd>
  </dl>
  <div class="seller-location">Austin, TX 78701</div>
  <div class="detail-section detail-highlights">
    <p>This GT4 was bought new in 2022 and has been driven sparingly.</p>
  </div>
  <ul class="detail-equipment">
    <li>Full Bucket Seats</li>
    <li>PCCB</li>
    <li>Sport Chrono Package</li>
  </ul>
  <span class="sold-for">Sold for $139,500</span>
</body>
</html>
"""


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def bat_site():
    return BRING_A_TRAILER


@pytest.fixture
def cab_site():
    return CARS_AND_BIDS


@pytest.fixture
def make_context():
    """Build a PageContext from an HTML snippet (Bring a Trailer config by default)."""

    def _make(html, site=BRING_A_TRAILER, url="https://example.com/listing/test/"):
        return build_page_context(html, site, url, today=TODAY)

    return _make


@pytest.fixture
def mock_response():
    """Build a fake requests response."""

    def _make(status_code=200, content=None, text="", body=None):
        response = Mock()
        response.status_code = status_code
        response.text = text
        if body is not None:
            response.json.return_value = body
        elif content is not None:
            response.json.return_value = {"choices": [{"message": {"content": content}}]}
        else:
            response.json.side_effect = ValueError("no JSON")
        return response

    return _make


@pytest.fixture
def bat_sold_html():
    return BAT_SOLD_PAGE


@pytest.fixture
def bat_active_html():
    return BAT_ACTIVE_PAGE


@pytest.fixture
def cab_sold_html():
    return CARS_AND_BIDS_SOLD_PAGE
