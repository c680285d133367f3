from foodscan.services.ocr_enhancer import (
    detect_brand,
    detect_product_name,
    enhance_ingredient_detection,
    preprocess_text,
)

LABEL = """Crunchy Granola
ACME FOODS
Ingredients:
Rolled Oats, Honey, Almonds.
Sea Salt; Vitamin E (Tocopherols)
Nutrition Facts
Calories 120"""


def test_digit_corrections_only_inside_words():
    assert preprocess_text("S0DIUM BENZ0ATE") == "SODIUM BENZOATE"
    assert preprocess_text("Vitamin B1, 250mg") == "Vitamin B1, 250mg"
    assert preprocess_text("5 g sugar") == "5 g sugar"


def test_symbol_artifacts_removed():
    assert preprocess_text("Sug^ar ~salt` ") == "Sugar salt"


def test_case_boundary_split_and_spacing():
    assert preprocess_text("wheatFlour") == "wheat Flour"
    assert preprocess_text("oats   and\t\thoney\nsalt") == "oats and honey\nsalt"


def test_ingredients_section():
    assert enhance_ingredient_detection(LABEL) == [
        "Rolled Oats", "Honey", "Almonds", "Sea Salt", "Vitamin E", "Tocopherols",
    ]


def test_marker_line_only_opens_the_section():
    text = "Ingredients: sugar, salt\nwater, oats\nNutrition Facts"
    assert enhance_ingredient_detection(text) == ["water", "oats"]


def test_section_ends_at_digit_line():
    text = "Ingredients:\nWater, Sugar\n100% natural\nLemon"
    assert enhance_ingredient_detection(text) == ["Water", "Sugar"]


def test_contains_marker_starts_section():
    text = "Contains:\nmilk, soy\nMay contain traces of nuts"
    assert enhance_ingredient_detection(text) == ["milk", "soy"]


def test_short_and_numeric_tokens_dropped():
    assert enhance_ingredient_detection("Ingredients:\nA, 2% Salt, Water") == ["Water"]


def test_dedupe_is_case_insensitive():
    assert enhance_ingredient_detection("Ingredients:\nSugar, sugar, SUGAR, Salt") == ["Sugar", "Salt"]


def test_fallback_without_markers_never_raises():
    result = enhance_ingredient_detection("random text with no markers")
    assert isinstance(result, list)

    assert enhance_ingredient_detection("") == []

    fallback = enhance_ingredient_detection("Organic Cane Sugar and natural flavors")
    assert "natural flavors" in fallback


def test_product_name():
    assert detect_product_name("") == "Unknown Product"
    assert detect_product_name(LABEL) == "Crunchy Granola"
    assert detect_product_name("INGREDIENTS: SUGAR\nChoco Crunch") == "Choco Crunch"
    assert detect_product_name("12345\nBRAND") == "12345"


def test_brand():
    assert detect_brand("") == "Unknown Brand"
    assert detect_brand(LABEL) == "ACME FOODS"
    assert detect_brand("Choco Crunch\nSweet Foods Inc.\nIngredients: sugar") == "Sweet Foods Inc."
    assert detect_brand("Choco Crunch\nmade with love") == "made with love"
    assert detect_brand("single line of text here that is long") == "Unknown Brand"
