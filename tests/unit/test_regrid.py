"""Tests for the Regrid parcel search client."""

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from citywise.retrieval.regrid import outer_ring, parse_regrid_result, search_regrid_parcel

RING = [
    [-112.0705, 33.4495],
    [-112.0695, 33.4495],
    [-112.0695, 33.4505],
    [-112.0705, 33.4505],
    [-112.0705, 33.4495],
]

RESULT = {
    "type": "Feature",
    "geometry": {"type": "Polygon", "coordinates": [RING]},
    "properties": {
        "headline": "123 E Main St",
        "fields": {
            "parcelnumb": "123-45-678",
            "address": "123 E MAIN ST",
            "scity": "PHOENIX",
            "state2": "AZ",
            "szip5": "85004",
            "owner": "JANE DOE",
            "mailadd": "PO BOX 1",
            "zoning": "R1-6",
            "gisacre": 0.165,
            "yearbuilt": 1998,
            "improvval": 250000,
            "landval": 160000,
            "taxtot": "2,350.12",
            "saledt": "2019-06-14",
            "lat": "33.45",
            "lon": "-112.07",
        },
    },
}


def _client(payload) -> AsyncMock:
    resp = MagicMock()
    resp.json.return_value = payload
    resp.raise_for_status = MagicMock()

    mock_client = AsyncMock()
    mock_client.get.return_value = resp
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    return mock_client


class TestOuterRing:
    def test_polygon(self):
        ring = outer_ring({"type": "Polygon", "coordinates": [RING]})
        assert len(ring) == 5
        assert ring[0] == (-112.0705, 33.4495)

    def test_multipolygon_takes_first(self):
        ring = outer_ring({"type": "MultiPolygon", "coordinates": [[RING], [[[0, 0], [1, 0], [1, 1]]]]})
        assert ring[1] == (-112.0695, 33.4495)

    def test_missing(self):
        assert outer_ring(None) == []
        assert outer_ring({"type": "Polygon", "coordinates": []}) == []


class TestParseResult:
    def test_fields(self):
        parcel = parse_regrid_result(RESULT)
        assert parcel.apn == "123-45-678"
        assert parcel.address == "123 E MAIN ST"
        assert parcel.city == "PHOENIX"
        assert parcel.owner == "JANE DOE"
        assert parcel.owner_address == "PO BOX 1"
        assert parcel.zoning == "R1-6"
        assert parcel.tax_amount == 2350.12
        assert parcel.last_sale_date == "2019-06-14"
        assert parcel.lat == 33.45
        assert len(parcel.boundary) == 5

    def test_lot_sqft_from_acres(self):
        parcel = parse_regrid_result(RESULT)
        assert parcel.lot_acres == 0.165
        assert parcel.lot_size_sqft == 7187.0

    def test_zero_values_read_as_missing(self):
        result = {"properties": {"fields": {"yearbuilt": 0, "taxtot": 0, "bedrooms": None}}}
        parcel = parse_regrid_result(result)
        assert parcel.tax_amount is None
        assert parcel.bedrooms is None

    def test_address_falls_back_to_headline_then_query(self):
        assert parse_regrid_result({"properties": {"headline": "1 Main"}}).address == "1 Main"
        assert parse_regrid_result({}, query="2 Main").address == "2 Main"


class TestSearchRegridParcel:
    @pytest.mark.asyncio
    async def test_success(self):
        mock_client = _client({"results": [RESULT]})

        with patch("citywise.retrieval.regrid.httpx.AsyncClient", return_value=mock_client), \
             patch("citywise.retrieval.regrid.settings") as mock_settings:
            mock_settings.regrid_api_token = "test_token"
            mock_settings.regrid_search_url = "https://regrid.test/search.json"
            result = await search_regrid_parcel("123 E Main St, Phoenix, AZ")

        assert result is not None
        assert result.zoning == "R1-6"
        call = mock_client.get.call_args
        assert call.args[0] == "https://regrid.test/search.json"
        assert call.kwargs["params"]["token"] == "test_token"
        assert call.kwargs["params"]["query"] == "123 E Main St, Phoenix, AZ"

    @pytest.mark.asyncio
    async def test_no_results(self):
        mock_client = _client({"results": []})

        with patch("citywise.retrieval.regrid.httpx.AsyncClient", return_value=mock_client), \
             patch("citywise.retrieval.regrid.settings") as mock_settings:
            mock_settings.regrid_api_token = "test_token"
            result = await search_regrid_parcel("nowhere")

        assert result is None

    @pytest.mark.asyncio
    async def test_no_token(self):
        with patch("citywise.retrieval.regrid.httpx.AsyncClient") as mock_cls, \
             patch("citywise.retrieval.regrid.settings") as mock_settings:
            mock_settings.regrid_api_token = ""
            result = await search_regrid_parcel("123 E Main St")

        assert result is None
        mock_cls.assert_not_called()

    @pytest.mark.asyncio
    async def test_http_error_propagates(self):
        mock_client = _client({})
        mock_client.get.side_effect = httpx.ConnectTimeout("timed out")

        with patch("citywise.retrieval.regrid.httpx.AsyncClient", return_value=mock_client), \
             patch("citywise.retrieval.regrid.settings") as mock_settings:
            mock_settings.regrid_api_token = "test_token"
            with pytest.raises(httpx.ConnectTimeout):
                await search_regrid_parcel("123 E Main St")
