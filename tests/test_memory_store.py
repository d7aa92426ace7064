from datetime import datetime, timezone
import re

import pytest

from app.core.config import Settings
from app.db.database import create_store
from app.db.memory import MemoryStore, matches


@pytest.fixture
def homes():
    coll = MemoryStore().collection("properties")
    coll.insert_one({"title": "Lake House", "price": 300000, "propertyType": "house",
                     "address": {"city": "Austin"}, "amenities": ["pool", "garage"]})
    coll.insert_one({"title": "City Loft", "price": 150000, "propertyType": "apartment",
                     "address": {"city": "Dallas"}, "amenities": []})
    coll.insert_one({"title": "Hill Villa", "price": 900000, "propertyType": "villa",
                     "address": {"city": "Austin"}})
    return coll


def test_insert_assigns_id_and_timestamps(homes):
    doc = homes.insert_one({"title": "New"})
    assert re.fullmatch(r"[0-9a-f]{24}", doc["_id"])
    assert doc["createdAt"].tzinfo is not None
    assert doc["updatedAt"] == doc["createdAt"]


def test_insert_keeps_preset_id(homes):
    doc = homes.insert_one({"_id": "abc", "title": "Preset"})
    assert homes.get("abc")["title"] == "Preset"
    with pytest.raises(ValueError):
        homes.insert_one({"_id": doc["_id"]})


def test_filters_on_nested_fields_and_arrays(homes):
    assert homes.count({"address.city": "Austin"}) == 2
    assert homes.count({"amenities": "pool"}) == 1
    assert homes.count({"price": {"$gte": 150000, "$lt": 900000}}) == 2
    assert homes.count({"propertyType": {"$in": ["villa", "house"]}}) == 2
    assert homes.count({"amenities": {"$exists": False}}) == 1


def test_regex_and_logical_operators(homes):
    query = {"$and": [
        {"address.city": {"$regex": "^austin$", "$options": "i"}},
        {"$or": [{"title": {"$regex": "villa", "$options": "i"}}, {"price": {"$lt": 100}}]},
    ]}
    found = homes.find(query)
    assert [d["title"] for d in found] == ["Hill Villa"]


def test_mismatched_types_never_match_ranges():
    assert not matches({"price": 100}, {"price": {"$gte": "cheap"}})


def test_sort_skip_limit_and_projection(homes):
    docs = homes.find({}, sort=[("address.city", 1), ("price", -1)], skip=1, limit=1,
                      projection={"title": 1})
    assert docs == [{"title": "Lake House", "_id": docs[0]["_id"]}]


def test_update_one_returns_updated_document(homes):
    target = homes.find_one({"title": "City Loft"})
    updated = homes.update_one({"_id": target["_id"]},
                               {"$inc": {"views": 1}, "$push": {"amenities": {"$each": ["gym", "spa"]}}})
    assert updated["views"] == 1
    assert updated["amenities"] == ["gym", "spa"]
    assert updated["updatedAt"] >= target["updatedAt"]
    assert homes.update_one({"_id": "missing"}, {"$set": {"x": 1}}) is None


def test_returned_documents_are_copies(homes):
    doc = homes.find_one({"title": "Lake House"})
    doc["title"] = "Changed"
    assert homes.find_one({"_id": doc["_id"]})["title"] == "Lake House"


def test_update_many_and_delete(homes):
    assert homes.update_many({"address.city": "Austin"}, {"$set": {"featured": True}}) == 2
    assert homes.count({"featured": True}) == 2
    assert homes.delete_many({"featured": True}) == 2
    assert homes.count() == 1


def test_group_and_sort_pipeline(homes):
    rows = homes.aggregate([
        {"$group": {"_id": "$address.city", "count": {"$sum": 1}, "avgPrice": {"$avg": "$price"}}},
        {"$sort": {"count": -1}},
    ])
    assert rows[0] == {"_id": "Austin", "count": 2, "avgPrice": 600000}
    assert rows[1]["_id"] == "Dallas"


def test_bucket_with_default(homes):
    homes.insert_one({"title": "No price"})
    rows = homes.aggregate([{"$bucket": {
        "groupBy": "$price",
        "boundaries": [0, 200000, 500000],
        "default": "Other",
        "output": {"count": {"$sum": 1}},
    }}])
    assert rows == [
        {"_id": 0, "count": 1},
        {"_id": 200000, "count": 1},
        {"_id": "Other", "count": 2},
    ]


def test_date_part_grouping():
    coll = MemoryStore().collection("leads")
    coll.insert_one({"createdAt": datetime(2024, 3, 5, tzinfo=timezone.utc)})
    coll.insert_one({"createdAt": datetime(2024, 3, 20, tzinfo=timezone.utc)})
    coll.insert_one({"createdAt": datetime(2024, 4, 1, tzinfo=timezone.utc)})
    rows = coll.aggregate([
        {"$group": {"_id": {"year": {"$year": "$createdAt"}, "month": {"$month": "$createdAt"}},
                    "count": {"$sum": 1}}},
        {"$sort": {"_id.year": -1, "_id.month": -1}},
    ])
    assert rows == [
        {"_id": {"year": 2024, "month": 4}, "count": 1},
        {"_id": {"year": 2024, "month": 3}, "count": 2},
    ]


def test_create_store_selects_backend():
    assert isinstance(create_store(Settings(store_backend="memory")), MemoryStore)
    with pytest.raises(ValueError):
        create_store(Settings(store_backend="redis"))
