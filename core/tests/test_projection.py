from core.navigation import EffectiveMenu, MenuEntry, MenuItem
from core.projection import (
    ActiveMatch,
    ExpansionState,
    NavigationRequest,
    OpenPanel,
    RouteTable,
    build_sidebar,
    filter_menu,
    select_entry,
)

BASE = "/dashboard/sch1"

HOME = MenuEntry("home", "Home", "fas fa-house", "")
STUDENTS = MenuEntry(
    "students",
    "Student Management",
    "fas fa-user-graduate",
    "/students",
    sub_items=(
        MenuItem("add_student", "Add Student", "/students/add"),
        MenuItem("student_directory", "Student Directory", "/students/directory"),
    ),
)
FEES = MenuEntry(
    "fees",
    "Fees",
    "fas fa-indian-rupee-sign",
    "/fees",
    sub_items=(MenuItem("fee_heads", "Fee Heads", "/fees/v2/fee-heads"),),
)
LIBRARY = MenuEntry("library", "Library", "fas fa-book", "/library")
GUIDE = MenuEntry("module-guide", "Module Guide", "fas fa-circle-question", None, opens_inline_panel=True)
ACCOUNT = MenuEntry(
    "account",
    "Account",
    "fas fa-cog",
    None,
    sub_items=(MenuItem("change_password", "Change Password", "/change-password"),),
)

MENU = EffectiveMenu((HOME, STUDENTS, FEES, LIBRARY, GUIDE, ACCOUNT))
ORDER = list(MENU.ids)


def test_longest_prefix_wins():
    table = RouteTable([STUDENTS], BASE)
    assert table.match(f"{BASE}/students/add/123") == ActiveMatch("students", "add_student")
    assert table.match(f"{BASE}/students/list") == ActiveMatch("students", None)


def test_sub_route_more_specific_than_parent_route():
    parent = MenuEntry("students", "Students", "", "/students")
    child = MenuEntry("students-add", "Add", "", "/students/add")
    table = RouteTable([parent, child], BASE)
    assert table.match(f"{BASE}/students/add/123").entry_id == "students-add"


def test_prefix_requires_segment_boundary():
    table = RouteTable([LIBRARY], BASE)
    assert table.match(f"{BASE}/library-old") is None
    assert table.match(f"{BASE}/library/").entry_id == "library"


def test_home_matches_base_exactly():
    table = RouteTable([HOME, LIBRARY], BASE)
    assert table.match(BASE).entry_id == "home"
    assert table.match(BASE + "/").entry_id == "home"
    assert table.match(f"{BASE}/unknown") is None


def test_search_filter_keeps_matching_entry_and_expands_it():
    items = build_sidebar(EffectiveMenu((FEES, LIBRARY)), ["fees", "library"], BASE, query="fee")

    assert [i.id for i in items] == ["fees"]
    assert [s.label for s in items[0].sub_items] == ["Fee Heads"]
    assert items[0].expanded is True


def test_search_keeps_only_matching_sub_items_when_parent_does_not_match():
    result = filter_menu([STUDENTS, LIBRARY], "directory")

    assert len(result) == 1
    entry, subs = result[0]
    assert entry.id == "students"
    assert [s.key for s in subs] == ["student_directory"]


def test_search_is_case_insensitive_and_matches_paths():
    assert [e.id for e, _ in filter_menu(MENU.entries, "LIBRARY")] == ["library"]
    assert [e.id for e, _ in filter_menu(MENU.entries, "change-password")] == ["account"]


def test_blank_query_keeps_everything():
    assert len(filter_menu(MENU.entries, "   ")) == len(MENU)


def test_active_sub_item_forces_expansion():
    items = build_sidebar(MENU, ORDER, BASE, f"{BASE}/students/directory/")
    students = next(i for i in items if i.id == "students")

    assert students.active
    assert students.expanded
    assert [s.active for s in students.sub_items] == [False, True]
    assert not next(i for i in items if i.id == "fees").expanded


def test_user_toggle_expands_without_active_child():
    expansion = ExpansionState()
    expansion.toggle("fees")
    items = build_sidebar(MENU, ORDER, BASE, BASE, expansion=expansion)

    assert next(i for i in items if i.id == "fees").expanded
    assert expansion.toggle("fees") is False


def test_sidebar_follows_given_order_and_drag_flags():
    order = ["library", "home", "fees", "students", "module-guide", "account"]
    items = build_sidebar(MENU, order, BASE, drag_enabled=True)
    assert [i.id for i in items] == order
    assert all(i.draggable for i in items)

    collapsed = build_sidebar(MENU, order, BASE, drag_enabled=True, collapsed=True)
    assert not any(i.draggable for i in collapsed)


def test_selection_navigates_or_opens_panel():
    assert select_entry(LIBRARY, BASE) == NavigationRequest(f"{BASE}/library")
    assert select_entry(HOME, BASE) == NavigationRequest(BASE)
    assert select_entry(GUIDE, BASE) == OpenPanel("module-guide")
    assert select_entry(STUDENTS, BASE, "/students/add") == NavigationRequest(f"{BASE}/students/add")
    assert select_entry(STUDENTS, BASE, "/fees") is None
    assert select_entry(ACCOUNT, BASE) is None


def test_sidebar_items_carry_href_or_panel():
    items = {i.id: i for i in build_sidebar(MENU, ORDER, BASE)}

    assert items["library"].href == f"{BASE}/library"
    assert items["module-guide"].panel == "module-guide"
    assert items["module-guide"].href is None
    assert items["account"].href is None
    assert items["account"].sub_items[0].href == f"{BASE}/change-password"
    assert items["fees"].as_dict()["sub_items"][0]["key"] == "fee_heads"
