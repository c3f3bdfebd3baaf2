# ABOUTME: Canned Google Books volumes API response fixtures for testing.
# ABOUTME: Realistic JSON dicts covering books, audio editions, and series data.

SCHWARM_VOLUME = {
    "id": "abc123",
    "volumeInfo": {
        "title": "Der Schwarm",
        "authors": ["Frank Schätzing"],
        "publisher": "Kiepenheuer & Witsch",
        "publishedDate": "2004-03-01",
        "description": "Ein Roman über das Meer.",
        "industryIdentifiers": [
            {"type": "ISBN_10", "identifier": "3462033743"},
            {"type": "ISBN_13", "identifier": "9783462033748"},
        ],
        "categories": ["Fiction"],
        "language": "de",
        "imageLinks": {"thumbnail": "http://books.google.com/books/content?id=abc123"},
    },
}

RUMO_VOLUME = {
    "id": "def456",
    "volumeInfo": {
        "title": "Rumo & die Wunder im Dunkeln (Zamonien, Band 3)",
        "authors": ["Walter Moers"],
        "publishedDate": "2003",
        "industryIdentifiers": [{"type": "ISBN_13", "identifier": "9783492045506"}],
        "language": "de",
    },
}

NATIVE_SERIES_VOLUME = {
    "id": "ghi789",
    "volumeInfo": {
        "title": "Die Stadt der Träumenden Bücher",
        "authors": ["Walter Moers"],
        "seriesInfo": {"volumeSeries": [{"seriesId": "zamonien", "orderNumber": 4}]},
        "industryIdentifiers": [{"type": "ISBN_13", "identifier": "9783492046633"}],
    },
}

AUDIO_CATEGORY_VOLUME = {
    "id": "aud001",
    "volumeInfo": {
        "title": "Der Schwarm",
        "authors": ["Frank Schätzing"],
        "categories": ["Audiobooks"],
    },
}

AUDIO_TITLE_VOLUME = {
    "id": "aud002",
    "volumeInfo": {
        "title": "Der Schwarm (Hörbuch, ungekürzt)",
        "authors": ["Frank Schätzing"],
    },
}

BARE_VOLUME = {"id": "bare", "volumeInfo": {}}

VOLUMES_RESPONSE = {
    "kind": "books#volumes",
    "totalItems": 4,
    "items": [SCHWARM_VOLUME, AUDIO_CATEGORY_VOLUME, AUDIO_TITLE_VOLUME, RUMO_VOLUME],
}

ISBN_RESPONSE = {"kind": "books#volumes", "totalItems": 1, "items": [SCHWARM_VOLUME]}

EMPTY_RESPONSE = {"kind": "books#volumes", "totalItems": 0}
