from utils import archive_filename, card_entry_name, safe_filename_stem, single_line


def test_safe_filename_stem_basic():
    assert safe_filename_stem("John Doe") == "John_Doe"


def test_safe_filename_stem_strips_weird_chars():
    assert safe_filename_stem("  A/B:C*D?  ") == "ABCD"


def test_safe_filename_stem_empty_fallback():
    assert safe_filename_stem("") == "attendee"
    assert safe_filename_stem("   ") == "attendee"
    assert safe_filename_stem(None) == "attendee"


def test_safe_filename_stem_custom_fallback():
    assert safe_filename_stem("***", fallback="x") == "x"


def test_single_line():
    assert single_line("Alex\nShort") == "Alex Short"
    assert single_line("  Kim \t\r\n Lee ") == "Kim Lee"
    assert single_line(None) == ""


def test_card_entry_name_adds_record_id():
    assert card_entry_name("Alex Short", "u1") == "Alex_Short_u1.png"


def test_card_entry_name_same_name_different_ids_do_not_collide():
    assert card_entry_name("Kim", "u1") != card_entry_name("Kim", "u2")


def test_card_entry_name_ids_that_sanitize_alike_do_not_collide():
    names = {card_entry_name("Kim", rid) for rid in ("u.1", "u1", "u/1", "u 1")}
    assert len(names) == 4
    assert card_entry_name("Kim", "u1") == "Kim_u1.png"


def test_card_entry_name_name_fell_back_to_id():
    assert card_entry_name("u1", "u1") == "u1.png"


def test_archive_filename():
    assert archive_filename("bulk-qr-codes.zip") == "bulk-qr-codes.zip"
    assert archive_filename("bulk-qr-codes.zip", "Event 7") == "bulk-qr-codes_Event_7.zip"
    assert archive_filename("cards", "e1") == "cards_e1"
