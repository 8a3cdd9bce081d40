"""Tests for the wine repository and /api/wines endpoints."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from cellar.feature_flags import FeatureFlags, get_feature_flags
from cellar.models import (
    ConsumptionStatus,
    ExternalSource,
    ExternalWine,
    WineColor,
    WineCreate,
    WineFilters,
    WineUpdate,
)
from cellar.services.rack_repository import RackSlotNotFoundError, RackSlotOccupiedError


def make_wine(**overrides) -> WineCreate:
    """Create a WineCreate with sensible defaults."""
    defaults = {
        "name": "Opus One",
        "vineyard": "Opus One Winery",
        "region": "Napa Valley, California",
        "color": WineColor.RED,
        "grape_varieties": ["Cabernet Sauvignon", "Merlot"],
        "price": 425.0,
        "vintage_year": 2018,
    }
    defaults.update(overrides)
    return WineCreate(**defaults)


def wine_payload(**overrides) -> dict:
    """JSON body for POST /api/wines."""
    payload = {
        "name": "Chablis Premier Cru",
        "vineyard": "Domaine William Fèvre",
        "region": "Burgundy, France",
        "color": "White",
        "grape_varieties": ["Chardonnay"],
        "price": 48.0,
        "vintage_year": 2020,
    }
    payload.update(overrides)
    return payload


# === Model Validation ===


class TestWineValidation:
    def test_blank_name_rejected(self):
        with pytest.raises(ValueError):
            make_wine(name="   ")

    def test_vintage_before_1800_rejected(self):
        with pytest.raises(ValueError):
            make_wine(vintage_year=1799)

    def test_future_vintage_rejected(self):
        with pytest.raises(ValueError):
            make_wine(vintage_year=datetime.now().year + 1)

    def test_rating_out_of_range_rejected(self):
        with pytest.raises(ValueError):
            make_wine(rating=101)

    def test_grape_list_is_cleaned(self):
        wine = make_wine(grape_varieties=[" Merlot ", "", "  "])
        assert wine.grape_varieties == ["Merlot"]

    def test_update_cannot_null_required_fields(self):
        with pytest.raises(ValueError):
            WineUpdate(name=None)

    def test_update_allows_clearing_optional_fields(self):
        changes = WineUpdate(rack_slot=None, description=None)
        assert changes.model_dump(exclude_unset=True) == {"rack_slot": None, "description": None}


# === Repository Tests ===


class TestWineRepository:
    def test_create_returns_wine(self, wine_repo):
        wine = wine_repo.create(make_wine())
        assert len(wine.id) == 36  # UUID format
        assert wine.name == "Opus One"
        assert wine.color == WineColor.RED
        assert wine.grape_varieties == ["Cabernet Sauvignon", "Merlot"]
        assert wine.consumption_status == ConsumptionStatus.AVAILABLE
        assert wine.currency == "USD"
        assert wine.date_added is not None

    def test_find_by_id_missing(self, wine_repo):
        assert wine_repo.find_by_id("no-such-wine") is None

    def test_create_with_rack_slot_occupies_it(self, wine_repo, rack_repo):
        wine = wine_repo.create(make_wine(rack_slot="c7"))
        assert wine.rack_slot == "C7"

        slot = rack_repo.find_by_slot_id("C7")
        assert slot.is_occupied is True
        assert slot.wine_id == wine.id

    def test_create_with_unknown_slot_raises(self, wine_repo):
        with pytest.raises(RackSlotNotFoundError):
            wine_repo.create(make_wine(rack_slot="Z99"))
        assert wine_repo.count() == 0

    def test_create_with_taken_slot_raises(self, wine_repo):
        wine_repo.create(make_wine(rack_slot="A1"))
        with pytest.raises(RackSlotOccupiedError):
            wine_repo.create(make_wine(name="Second", rack_slot="A1"))
        assert wine_repo.count() == 1

    def test_create_consumed_wine_skips_rack(self, wine_repo, rack_repo):
        wine = wine_repo.create(make_wine(rack_slot="B2", consumption_status=ConsumptionStatus.CONSUMED))
        assert wine.rack_slot is None
        assert wine.date_consumed is not None
        assert rack_repo.find_by_slot_id("B2").is_occupied is False

    def test_find_all_newest_first(self, wine_repo):
        first = wine_repo.create(make_wine(name="First"))
        second = wine_repo.create(make_wine(name="Second"))

        wines, total = wine_repo.find_all()
        assert total == 2
        assert [w.id for w in wines] == [second.id, first.id]

    def test_find_all_filters(self, wine_repo):
        wine_repo.create(make_wine(name="Opus One", price=425.0, rating=97))
        wine_repo.create(make_wine(
            name="Puligny-Montrachet",
            vineyard="Domaine Leflaive",
            region="Burgundy, France",
            color=WineColor.WHITE,
            grape_varieties=["Chardonnay"],
            price=120.0,
            vintage_year=2019,
            rating=94,
        ))

        wines, total = wine_repo.find_all(WineFilters(color=WineColor.WHITE))
        assert total == 1
        assert wines[0].name == "Puligny-Montrachet"

        _, total = wine_repo.find_all(WineFilters(search="chardonnay"))
        assert total == 1

        _, total = wine_repo.find_all(WineFilters(region="burgundy"))
        assert total == 1

        _, total = wine_repo.find_all(WineFilters(price_min=100, price_max=200))
        assert total == 1

        _, total = wine_repo.find_all(WineFilters(rating_min=95))
        assert total == 1

        _, total = wine_repo.find_all(WineFilters(vintage_year_min=2018, vintage_year_max=2019))
        assert total == 2

    def test_find_all_paginates(self, wine_repo):
        for i in range(5):
            wine_repo.create(make_wine(name=f"Wine {i}"))

        page_one, total = wine_repo.find_all(page=1, limit=2)
        page_three, _ = wine_repo.find_all(page=3, limit=2)
        assert total == 5
        assert len(page_one) == 2
        assert len(page_three) == 1

    def test_update_only_touches_sent_fields(self, wine_repo):
        wine = wine_repo.create(make_wine(description="Original"))
        updated = wine_repo.update(wine.id, WineUpdate(rating=96))

        assert updated.rating == 96
        assert updated.description == "Original"
        assert updated.name == "Opus One"

    def test_update_missing_wine_returns_none(self, wine_repo):
        assert wine_repo.update("no-such-wine", WineUpdate(rating=90)) is None

    def test_update_moves_rack_slot(self, wine_repo, rack_repo):
        wine = wine_repo.create(make_wine(rack_slot="A1"))
        updated = wine_repo.update(wine.id, WineUpdate(rack_slot="a2"))

        assert updated.rack_slot == "A2"
        assert rack_repo.find_by_slot_id("A1").is_occupied is False
        assert rack_repo.find_by_slot_id("A2").wine_id == wine.id

    def test_update_clearing_rack_slot_frees_it(self, wine_repo, rack_repo):
        wine = wine_repo.create(make_wine(rack_slot="A1"))
        updated = wine_repo.update(wine.id, WineUpdate(rack_slot=None))

        assert updated.rack_slot is None
        assert rack_repo.find_by_slot_id("A1").is_occupied is False

    def test_update_to_consumed_releases_slot(self, wine_repo, rack_repo):
        wine = wine_repo.create(make_wine(rack_slot="D4"))
        updated = wine_repo.update(wine.id, WineUpdate(consumption_status=ConsumptionStatus.CONSUMED))

        assert updated.consumption_status == ConsumptionStatus.CONSUMED
        assert updated.rack_slot is None
        assert updated.date_consumed is not None
        assert rack_repo.find_by_slot_id("D4").is_occupied is False

    def test_mark_consumed(self, wine_repo, rack_repo):
        wine = wine_repo.create(make_wine(rack_slot="E5"))
        when = datetime(2026, 3, 14, 19, 30, tzinfo=timezone.utc)

        consumed = wine_repo.mark_consumed(wine.id, when)
        assert consumed.consumption_status == ConsumptionStatus.CONSUMED
        assert consumed.date_consumed == when
        assert consumed.rack_slot is None
        assert rack_repo.find_by_slot_id("E5").is_occupied is False

    def test_mark_consumed_missing_wine(self, wine_repo):
        assert wine_repo.mark_consumed("no-such-wine") is None

    def test_delete_releases_slot(self, wine_repo, rack_repo):
        wine = wine_repo.create(make_wine(rack_slot="F6"))
        assert wine_repo.delete(wine.id) is True
        assert wine_repo.find_by_id(wine.id) is None
        assert rack_repo.find_by_slot_id("F6").is_occupied is False
        assert wine_repo.delete(wine.id) is False

    def test_get_statistics(self, wine_repo):
        wine_repo.create(make_wine(name="A"))
        wine_repo.create(make_wine(name="B", consumption_status=ConsumptionStatus.RESERVED))
        wine_repo.create(make_wine(
            name="C",
            color=WineColor.WHITE,
            region="Burgundy, France",
            consumption_status=ConsumptionStatus.CONSUMED,
        ))

        stats = wine_repo.get_statistics()
        assert stats.total == 3
        assert stats.available == 1
        assert stats.reserved == 1
        assert stats.consumed == 1
        assert stats.colors == {"Red": 2, "White": 1}
        assert stats.regions == {"Napa Valley, California": 2, "Burgundy, France": 1}

    def test_get_consumption_statistics(self, wine_repo):
        now = datetime(2026, 3, 20, tzinfo=timezone.utc)
        first = wine_repo.create(make_wine(name="This month", rating=92))
        second = wine_repo.create(make_wine(name="Earlier this year", rating=88))
        third = wine_repo.create(make_wine(name="Last year", color=WineColor.WHITE, region="Mosel, Germany"))
        wine_repo.create(make_wine(name="Still in the cellar"))

        wine_repo.mark_consumed(first.id, datetime(2026, 3, 2, tzinfo=timezone.utc))
        wine_repo.mark_consumed(second.id, datetime(2026, 1, 15, tzinfo=timezone.utc))
        wine_repo.mark_consumed(third.id, datetime(2025, 12, 31, tzinfo=timezone.utc))

        stats = wine_repo.get_consumption_statistics(now=now)
        assert stats.total_consumed == 3
        assert stats.consumed_this_month == 1
        assert stats.consumed_this_year == 2
        assert stats.average_rating == 90.0
        assert stats.favorite_region == "Napa Valley, California"
        assert stats.favorite_color == "Red"

    def test_consumption_statistics_empty(self, wine_repo):
        stats = wine_repo.get_consumption_statistics()
        assert stats.total_consumed == 0
        assert stats.average_rating is None
        assert stats.favorite_region is None


# === API Endpoint Tests ===


class TestWineEndpoints:
    def test_create_wine(self, client):
        response = client.post("/api/wines", json=wine_payload(rack_slot="b3"))
        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Chablis Premier Cru"
        assert data["color"] == "White"
        assert data["rack_slot"] == "B3"
        assert data["consumption_status"] == "Available"

    def test_create_wine_missing_fields(self, client):
        response = client.post("/api/wines", json={"name": "Nameless"})
        assert response.status_code == 422

    def test_create_wine_invalid_color(self, client):
        response = client.post("/api/wines", json=wine_payload(color="Orange"))
        assert response.status_code == 422

    def test_create_wine_invalid_vintage(self, client):
        response = client.post("/api/wines", json=wine_payload(vintage_year=1750))
        assert response.status_code == 422

    def test_create_wine_unknown_slot(self, client):
        response = client.post("/api/wines", json=wine_payload(rack_slot="Z1"))
        assert response.status_code == 400

    def test_create_wine_occupied_slot(self, client):
        client.post("/api/wines", json=wine_payload(rack_slot="A1"))
        response = client.post("/api/wines", json=wine_payload(name="Another", rack_slot="A1"))
        assert response.status_code == 409

    def test_get_wine(self, client):
        wine_id = client.post("/api/wines", json=wine_payload()).json()["id"]
        response = client.get(f"/api/wines/{wine_id}")
        assert response.status_code == 200
        assert response.json()["id"] == wine_id

    def test_get_wine_404(self, client):
        assert client.get("/api/wines/missing").status_code == 404

    def test_list_wines_with_pagination(self, client):
        for i in range(3):
            client.post("/api/wines", json=wine_payload(name=f"Wine {i}"))

        response = client.get("/api/wines", params={"limit": 2})
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        assert data["page"] == 1
        assert data["limit"] == 2
        assert data["total_pages"] == 2
        assert len(data["wines"]) == 2

    def test_list_wines_limit_capped(self, client):
        assert client.get("/api/wines", params={"limit": 101}).status_code == 422

    def test_list_wines_filters(self, client):
        client.post("/api/wines", json=wine_payload())
        client.post("/api/wines", json=wine_payload(
            name="Barolo",
            vineyard="Giacomo Conterno",
            region="Piedmont, Italy",
            color="Red",
            grape_varieties=["Nebbiolo"],
        ))

        data = client.get("/api/wines", params={"color": "Red"}).json()
        assert [w["name"] for w in data["wines"]] == ["Barolo"]

        data = client.get("/api/wines", params={"search": "nebbiolo"}).json()
        assert data["total"] == 1

    def test_update_wine(self, client):
        wine_id = client.post("/api/wines", json=wine_payload()).json()["id"]
        response = client.put(f"/api/wines/{wine_id}", json={"rating": 93, "personal_notes": "Flinty"})
        assert response.status_code == 200
        data = response.json()
        assert data["rating"] == 93
        assert data["personal_notes"] == "Flinty"
        assert data["name"] == "Chablis Premier Cru"

    def test_update_wine_null_required_field(self, client):
        wine_id = client.post("/api/wines", json=wine_payload()).json()["id"]
        response = client.put(f"/api/wines/{wine_id}", json={"name": None})
        assert response.status_code == 422

    def test_update_wine_404(self, client):
        assert client.put("/api/wines/missing", json={"rating": 90}).status_code == 404

    def test_consume_wine(self, client):
        wine_id = client.post("/api/wines", json=wine_payload(rack_slot="C3")).json()["id"]

        response = client.post(
            f"/api/wines/{wine_id}/consume",
            json={"consumed_date": "2026-05-01T18:00:00+00:00"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["consumption_status"] == "Consumed"
        assert data["rack_slot"] is None
        assert data["date_consumed"].startswith("2026-05-01T18:00:00")

        assert client.get("/api/rack/C3").json()["is_occupied"] is False

    def test_consume_without_body_defaults_to_now(self, client):
        wine_id = client.post("/api/wines", json=wine_payload()).json()["id"]
        response = client.post(f"/api/wines/{wine_id}/consume")
        assert response.status_code == 200
        assert response.json()["date_consumed"] is not None

    def test_consume_twice_rejected(self, client):
        wine_id = client.post("/api/wines", json=wine_payload()).json()["id"]
        client.post(f"/api/wines/{wine_id}/consume")
        assert client.post(f"/api/wines/{wine_id}/consume").status_code == 400

    def test_delete_wine(self, client):
        wine_id = client.post("/api/wines", json=wine_payload()).json()["id"]
        assert client.delete(f"/api/wines/{wine_id}").status_code == 204
        assert client.get(f"/api/wines/{wine_id}").status_code == 404
        assert client.delete(f"/api/wines/{wine_id}").status_code == 404

    def test_delete_wine_cascades_memories(self, client):
        wine_id = client.post("/api/wines", json=wine_payload()).json()["id"]
        memory_id = client.post("/api/memories", json={
            "wine_id": wine_id,
            "title": "Anniversary",
            "content": "Opened with oysters",
        }).json()["id"]

        client.delete(f"/api/wines/{wine_id}")
        assert client.get(f"/api/memories/{memory_id}").status_code == 404

    def test_statistics(self, client):
        client.post("/api/wines", json=wine_payload())
        client.post("/api/wines", json=wine_payload(name="Second", color="Red"))

        response = client.get("/api/wines/statistics")
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert data["available"] == 2
        assert data["colors"] == {"White": 1, "Red": 1}
        assert data["regions"] == {"Burgundy, France": 2}

    def test_consumption_statistics(self, client):
        wine_id = client.post("/api/wines", json=wine_payload(rating=91)).json()["id"]
        client.post(f"/api/wines/{wine_id}/consume")

        response = client.get("/api/wines/statistics/consumption")
        assert response.status_code == 200
        data = response.json()
        assert data["total_consumed"] == 1
        assert data["consumed_this_month"] == 1
        assert data["consumed_this_year"] == 1
        assert data["average_rating"] == 91.0
        assert data["favorite_color"] == "White"


class TestFoodPairingSuggestions:
    def test_suggestions_from_color_and_grapes(self, client):
        wine_id = client.post("/api/wines", json=wine_payload()).json()["id"]

        response = client.get(f"/api/wines/{wine_id}/food-pairings")
        assert response.status_code == 200
        data = response.json()
        assert data["wine_name"] == "Chablis Premier Cru"
        assert data["suggestions"] == ["Fish", "Poultry", "Soft cheese", "Lobster", "Cream sauces"]

    def test_suggestions_404(self, client):
        assert client.get("/api/wines/missing/food-pairings").status_code == 404


class TestExternalLookupEndpoints:
    def test_search_external(self, client):
        response = client.get("/api/wines/search-external", params={"q": "Margaux", "vintage": 2015})
        assert response.status_code == 200
        data = response.json()
        assert data["query"] == "Margaux"
        assert data["count"] == 1
        result = data["results"][0]
        assert result["name"] == "Margaux Estate"
        assert result["vintage_year"] == 2015
        assert result["region"] == "Sonoma County, California"
        assert result["rating"] == 92
        assert result["source"] == "wine_api"

    def test_search_external_requires_query(self, client):
        assert client.get("/api/wines/search-external").status_code == 400
        assert client.get("/api/wines/search-external", params={"q": "  "}).status_code == 400

    def test_search_external_disabled(self, client):
        from main import app
        app.dependency_overrides[get_feature_flags] = lambda: FeatureFlags(feature_external_search=False)

        response = client.get("/api/wines/search-external", params={"q": "Margaux"})
        assert response.status_code == 404

    def test_external_details(self, client):
        response = client.get("/api/wines/external/vivino/12345")
        assert response.status_code == 200
        data = response.json()
        assert data["rating"] == 92  # 4.6 stars
        assert data["region"] == "Napa Valley, California"
        assert data["url"] == "vivino:12345"

    def test_external_details_unknown_source(self, client):
        assert client.get("/api/wines/external/cellartracker/1").status_code == 404

    def test_api_stats_counts_requests(self, client):
        assert client.get("/api/wines/api-stats").json()["count"] == 0

        client.get("/api/wines/search-external", params={"q": "Margaux"})

        data = client.get("/api/wines/api-stats").json()
        assert data["count"] == 1
        assert data["last_request"] is not None


class TestAutoPopulate:
    def test_fills_empty_fields(self, client, lookup_service):
        lookup_service.search = AsyncMock(return_value=[ExternalWine(
            name="Chablis Premier Cru",
            description="Steely and saline.",
            rating=91,
            price=52.0,
            currency="EUR",
            food_pairings=["Oysters"],
            source=ExternalSource.VIVINO,
        )])
        wine_id = client.post("/api/wines", json=wine_payload(price=None)).json()["id"]

        response = client.post(f"/api/wines/{wine_id}/auto-populate")
        assert response.status_code == 200
        data = response.json()
        assert data["populated"] is True
        assert data["source"] == "vivino"
        assert set(data["updated_fields"]) == {"description", "rating", "food_pairings", "price", "currency"}
        assert data["wine"]["description"] == "Steely and saline."
        assert data["wine"]["rating"] == 91
        assert data["wine"]["currency"] == "EUR"

        query = lookup_service.search.call_args.args[0]
        assert query == "Chablis Premier Cru Domaine William Fèvre 2020"

    def test_keeps_existing_values(self, client, lookup_service):
        lookup_service.search = AsyncMock(return_value=[ExternalWine(
            name="Chablis",
            description="Other text",
            rating=80,
            source=ExternalSource.WINE_API,
        )])
        wine_id = client.post("/api/wines", json=wine_payload(description="Mine", rating=95)).json()["id"]

        data = client.post(f"/api/wines/{wine_id}/auto-populate").json()
        assert data["populated"] is False
        assert data["wine"]["description"] == "Mine"
        assert data["wine"]["rating"] == 95

    def test_no_external_match(self, client, lookup_service):
        lookup_service.search = AsyncMock(return_value=[])
        wine_id = client.post("/api/wines", json=wine_payload()).json()["id"]

        data = client.post(f"/api/wines/{wine_id}/auto-populate").json()
        assert data["populated"] is False
        assert data["message"] == "No external data found for this wine"

    def test_missing_wine(self, client):
        assert client.post("/api/wines/missing/auto-populate").status_code == 404
