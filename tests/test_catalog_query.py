import pytest

from conftest import make_product
from storefront.domain.services.catalog_query_svc import (
    CatalogQuery,
    CatalogView,
    available_brands,
    paginate,
    query_products,
)


def ids(products):
    return [p.product_id for p in products]


def test_category_filter_keeps_only_that_category(catalog):
    result = query_products(catalog, CatalogQuery(category="Women"))
    assert ids(result) == ["2", "4"]
    assert all(p.category == "Women" for p in result)


def test_all_category_keeps_everything_in_input_order(catalog):
    assert ids(query_products(catalog, CatalogQuery())) == ["1", "2", "3", "4", "5"]


def test_unknown_category_matches_nothing(catalog):
    assert query_products(catalog, CatalogQuery(category="Kids")) == []


def test_brand_filter_is_case_insensitive(catalog):
    assert ids(query_products(catalog, CatalogQuery(brand="OMEGA"))) == ["3", "4"]


def test_brand_filter_never_matches_missing_brand(catalog):
    result = query_products(catalog, CatalogQuery(brand="Hublot"))
    assert result == []
    assert "5" not in ids(query_products(catalog, CatalogQuery(brand="")))


@pytest.mark.parametrize("text", ["sea", "CERAMIC", "  diver  "])
def test_search_matches_name_or_description(catalog, text):
    assert ids(query_products(catalog, CatalogQuery(search_text=text))) == ["3"]


def test_search_matches_category(catalog):
    assert ids(query_products(catalog, CatalogQuery(search_text="women"))) == ["2", "4"]


def test_search_results_contain_the_text(catalog):
    needle = "a"
    for p in query_products(catalog, CatalogQuery(search_text=needle)):
        assert any(needle in (f or "").lower() for f in (p.name, p.description, p.category))


def test_brand_is_only_searched_server_side(catalog):
    params = CatalogQuery(search_text="rolex")
    assert query_products(catalog, params) == []
    assert ids(query_products(catalog, params, match_brand_in_search=True)) == ["1", "2"]


def test_blank_search_does_not_filter(catalog):
    assert len(query_products(catalog, CatalogQuery(search_text="   "))) == len(catalog)


def test_filters_combine_with_and(catalog):
    params = CatalogQuery(category="Men", brand="rolex", search_text="sub")
    assert ids(query_products(catalog, params)) == ["1"]


def test_price_low_and_high_are_stable(catalog):
    low = ids(query_products(catalog, CatalogQuery(sort_key="price-low")))
    high = ids(query_products(catalog, CatalogQuery(sort_key="price-high")))
    assert low == ["4", "1", "5", "2", "3"]
    # distinct prices reverse, equal prices (1/5 at 50, 2/3 at 80) keep input order
    assert high == ["2", "3", "1", "5", "4"]


def test_newest_sorts_by_date_added_desc(catalog):
    assert ids(query_products(catalog, CatalogQuery(sort_key="newest"))) == ["2", "5", "3", "4", "1"]


def test_popular_sorts_by_reviews_desc_stable(catalog):
    assert ids(query_products(catalog, CatalogQuery(sort_key="popular"))) == ["2", "3", "1", "5", "4"]


def test_unknown_sort_key_keeps_input_order(catalog):
    assert ids(query_products(catalog, CatalogQuery(sort_key="cheapest"))) == ["1", "2", "3", "4", "5"]


def test_query_does_not_mutate_input(catalog):
    before = list(catalog)
    query_products(catalog, CatalogQuery(category="Men", sort_key="price-high"))
    assert catalog == before


def test_two_product_scenario():
    products = [make_product("1", 50, "Men"), make_product("2", 80, "Women")]
    assert ids(query_products(products, CatalogQuery(category="Men"))) == ["1"]
    assert ids(query_products(products, CatalogQuery(sort_key="price-high"))) == ["2", "1"]


def test_paginate_slices_and_reports_total(catalog):
    page = paginate(catalog, page=2, limit=2)
    assert ids(page.items) == ["3", "4"]
    assert page.total == 5
    assert page.pages == 3


def test_paginate_past_the_end_is_empty(catalog):
    page = paginate(catalog, page=4, limit=2)
    assert page.items == []
    assert page.total == 5


def test_paginate_clamps_page_and_limit(catalog):
    page = paginate(catalog, page=0, limit=0)
    assert page.page == 1 and page.limit == 1
    assert ids(page.items) == ["1"]


def test_available_brands_first_seen_order(catalog):
    assert available_brands(catalog) == ["All", "Rolex", "Omega", "omega"]


def test_catalog_view_recomputes_only_when_inputs_change(catalog):
    view = CatalogView(catalog)
    assert len(view.items) == 5
    assert len(view.items) == 5
    assert view.recomputations == 1

    view.set_query(CatalogQuery())
    view.set_products(list(catalog))
    view.items
    assert view.recomputations == 1

    view.update_query(category="Men")
    assert ids(view.items) == ["1", "3", "5"]
    assert view.recomputations == 2

    view.set_products(catalog[:2])
    assert ids(view.items) == ["1"]
    assert view.recomputations == 3


def test_catalog_view_items_are_copies(catalog):
    view = CatalogView(catalog)
    view.items.clear()
    assert len(view.items) == 5
