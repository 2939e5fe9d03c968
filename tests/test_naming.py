from pagesnap.naming import NameAllocator, candidate_name, short_hash


def test_candidate_name_uses_final_path_segment():
    assert candidate_name("https://example.com/images/x.png?v=3") == "x.png"
    assert candidate_name("https://example.com/fonts/My%20Font.woff2") == "My_Font.woff2"
    assert candidate_name("https://example.com/") == "asset"


def test_same_url_always_gets_the_same_name():
    allocator = NameAllocator()
    first = allocator.allocate("https://example.com/a.png")
    assert allocator.allocate("https://example.com/a.png") == first == "a.png"


def test_collision_between_distinct_urls_is_suffixed_before_extension():
    allocator = NameAllocator()
    icons = allocator.allocate("https://example.com/icons/x.png")
    images = allocator.allocate("https://example.com/images/x.png")
    assert icons == "x.png"
    assert images == f"x-{short_hash('https://example.com/images/x.png')}.png"


def test_allocation_is_deterministic():
    urls = [
        "https://example.com/icons/x.png",
        "https://example.com/images/x.png",
        "https://cdn.example.com/x.png",
    ]
    names = [NameAllocator() for _ in range(2)]
    assert [names[0].allocate(u) for u in urls] == [names[1].allocate(u) for u in urls]


def test_collisions_are_case_insensitive():
    allocator = NameAllocator()
    allocator.allocate("https://example.com/Logo.PNG")
    assert allocator.allocate("https://example.com/b/logo.png") != "logo.png"


def test_reserved_names_are_never_handed_out():
    allocator = NameAllocator()
    assert allocator.allocate("https://example.com/theme/styles.css") != "styles.css"
    assert allocator.allocate("https://example.com/index.html") != "index.html"


def test_rename_releases_previous_name():
    allocator = NameAllocator()
    allocator.allocate("https://example.com/photo")
    assert allocator.rename("https://example.com/photo", "photo.jpg") == "photo.jpg"
    assert allocator.allocate("https://example.com/other/photo") == "photo"
