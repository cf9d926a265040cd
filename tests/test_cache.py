from panelreader.cache import LRUCache, PanelCache
from panelreader.geometry import full_page_polygon


def test_lru_evicts_least_recently_used():
    cache = LRUCache(capacity=2)
    cache.put("a", 1)
    cache.put("b", 2)
    cache.get("a")
    cache.put("c", 3)
    assert cache.get("b") is None
    assert cache.get("a") == 1 and cache.get("c") == 3


def test_lru_overwrite_refreshes_entry():
    cache = LRUCache(capacity=2)
    cache.put("a", 1)
    cache.put("b", 2)
    cache.put("a", 10)
    cache.put("c", 3)
    assert cache.get("a") == 10
    assert cache.get("b") is None


def test_panel_cache_misses_under_another_config_hash():
    cache = PanelCache(max_pages=4)
    cache.put(0, 1, [full_page_polygon(10, 10)])
    assert cache.get(0, 1) == [full_page_polygon(10, 10)]
    assert cache.get(0, 2) is None
    assert cache.get(1, 1) is None


def test_panel_cache_returns_independent_lists():
    cache = PanelCache()
    cache.put(3, 7, [full_page_polygon(10, 10)])
    cache.get(3, 7).clear()
    assert len(cache.get(3, 7)) == 1
    cache.clear()
    assert cache.get(3, 7) is None
