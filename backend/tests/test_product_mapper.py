import pytest

from app.services.product_mapper import (
    ImageHosts,
    collect_image_candidates,
    map_product,
    normalize_currency,
    pick_price,
    pick_stock,
    resolve_image_url,
)

HOSTS = ImageHosts(
    cdn_url="https://maxstyle.tsoftcdn.com",
    web_url="https://maxstyle.com.tr/",
    placeholder_url="https://via.placeholder.com/400x400.png?text=Gorsel+Yok",
)
CDN_IMAGE = "https://maxstyle.tsoftcdn.com/Data/B/D22/3836.jpg"


# ── Price / stock / currency ──────────────────────────────────────────────────

def test_vat_included_selling_price_beats_plain_price():
    assert pick_price({"Price": 10, "VatIncludedSellingPrice": 12}) == 12.00


def test_price_priority_follows_table_order():
    raw = {"SellingPrice": 1, "Price": 2, "SalePrice": 3, "VatIncludedPrice": 4}
    assert pick_price(raw) == 4


def test_zero_price_counts_as_defined():
    # 0 is a real value and must not fall through to the next field
    assert pick_price({"VatIncludedSellingPrice": 0, "Price": 50}) == 0


@pytest.mark.parametrize(
    "raw, expected",
    [
        ({"Price": "149.999"}, 150.00),
        ({"Price": "19.90"}, 19.90),
        ({"Price": 0.125}, 0.13),
        ({"Price": "abc"}, 0),
        ({"Price": float("inf")}, 0),
        ({"Price": -5}, 0),
        ({"Price": 1e30}, 1e30),
        ({"Price": "2.5e40"}, 2.5e40),
        ({"Price": None, "SellingPrice": "7"}, 7),
        ({}, 0),
    ],
)
def test_price_coercion(raw, expected):
    assert pick_price(raw) == expected


@pytest.mark.parametrize(
    "raw, expected",
    [
        ({"Stock": 5, "Quantity": 9}, 5),
        ({"Quantity": "12"}, 12),
        ({"TotalStock": 3.7}, 3),
        ({"Stock": "n/a"}, 0),
        ({"Stock": -2}, 0),
        ({}, 0),
    ],
)
def test_stock_coercion(raw, expected):
    assert pick_stock(raw) == expected


@pytest.mark.parametrize(
    "value, expected",
    [("TL", "TRY"), ("tl", "TRY"), ("USD", "USD"), ("eur", "EUR"), (None, "TRY"), ("", "TRY")],
)
def test_currency_normalization(value, expected):
    assert normalize_currency(value) == expected


# ── Image resolution ──────────────────────────────────────────────────────────

def test_absolute_image_with_extension_passes_through():
    url = "https://cdn.example.com/images/p/1.png"
    assert resolve_image_url({"ImageUrl": url}, HOSTS) == url


def test_relative_path_is_routed_to_cdn_data_b():
    assert resolve_image_url({"ImageUrl": "D22/3836.jpg"}, HOSTS) == CDN_IMAGE


def test_relative_data_path_is_not_double_prefixed():
    assert resolve_image_url({"ImageUrl": "Data/B/D22/3836.jpg"}, HOSTS) == CDN_IMAGE
    assert resolve_image_url({"ImageUrl": "/data/B/D22/3836.jpg"}, HOSTS) == (
        "https://maxstyle.tsoftcdn.com/data/B/D22/3836.jpg"
    )


def test_leading_slashes_are_stripped():
    assert resolve_image_url({"Image": "//D22/3836.jpg"}, HOSTS) == CDN_IMAGE


def test_primary_web_host_is_rewritten_to_cdn():
    raw = {"ImageUrl": "https://maxstyle.com.tr/D22/3836.jpg"}
    assert resolve_image_url(raw, HOSTS) == CDN_IMAGE


def test_no_candidates_yields_placeholder():
    assert resolve_image_url({"ImageUrl": "   ", "Images": []}, HOSTS) == HOSTS.placeholder_url


def test_extensionless_url_gets_jpg_appended():
    raw = {"ImageUrl": "https://maxstyle.com.tr/urun/mavi-gomlek"}
    assert resolve_image_url(raw, HOSTS) == "https://maxstyle.tsoftcdn.com/Data/B/urun/mavi-gomlek.jpg"


def test_candidate_with_extension_is_preferred_over_earlier_slug():
    raw = {
        "Images": [{"Url": "https://maxstyle.com.tr/mavi-gomlek"}],
        "MainImage": "D22/3836.JPG",
    }
    assert resolve_image_url(raw, HOSTS) == "https://maxstyle.tsoftcdn.com/Data/B/D22/3836.JPG"


def test_candidates_collected_from_lists_objects_and_single_fields_in_order():
    raw = {
        "ImageUrls": ["  a.jpg  ", "", None],
        "Images": [{"ImagePath": "b.png", "BigImageUrl": "c.png"}, 0],
        "Pictures": "not-a-list.jpg",
        "ImageUrl": "d.webp",
        "MainImage": {"Path": "e.jpeg"},
    }
    assert collect_image_candidates(raw) == ["a.jpg", "b.png", "c.png", "d.webp", "e.jpeg"]


# ── Whole record ──────────────────────────────────────────────────────────────

def test_map_product_full_record():
    raw = {
        "ProductName": "Mavi Gömlek",
        "StockCode": "MG-001",
        "Barcode": "8690000000002",
        "Price": 100,
        "VatIncludedSellingPrice": "120.456",
        "Stock": 4,
        "Currency": "TL",
        "ImageUrl": "D22/3836.jpg",
    }
    product = map_product(raw, "query-barcode", HOSTS)

    assert product.to_public() == {
        "barcode": "8690000000002",
        "stockCode": "MG-001",
        "name": "Mavi Gömlek",
        "price": 120.46,
        "stock": 4,
        "imageUrl": CDN_IMAGE,
        "currency": "TRY",
    }


def test_map_product_defaults_and_barcode_fallback():
    product = map_product({}, "8690000000001", HOSTS)

    assert product.barcode == "8690000000001"
    assert product.name == "Ürün"
    assert product.stock_code == ""
    assert product.price == 0
    assert product.stock == 0
    assert product.currency == "TRY"
    assert product.image_url == HOSTS.placeholder_url


def test_map_product_name_and_code_fallback_fields():
    product = map_product({"Name": "", "Title": "Kemer", "Sku": 4411, "ProductBarcode": 869}, "x", HOSTS)

    assert product.name == "Kemer"
    assert product.stock_code == "4411"
    assert product.barcode == "869"


def test_normalized_product_is_immutable():
    product = map_product({}, "1", HOSTS)
    with pytest.raises(Exception):
        product.price = 5
