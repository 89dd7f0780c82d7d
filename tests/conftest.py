"""
Feed samples shared by the tests.
"""
from __future__ import annotations

import copy

import pytest

THREAD_JSON = {
    "posts": [
        {
            "no": 100,
            "resto": 0,
            "now": "10/18/26(Sun)12:00:00",
            "time": 1792324800,
            "name": "Anonymous",
            "sub": "Rust &amp; you",
            "com": '<pre class="prettyprint">lang: rust<br>fn main() {}</pre>',
            "filename": "crab",
            "ext": ".png",
            "tim": 1792324800123,
            "md5": "Xwlkt3JiMaT/1yyw/0p5mw==",
            "fsize": 20480,
            "w": 640,
            "h": 480,
            "country": "US",
            "country_name": "United States",
            "replies": 2,
            "images": 1,
            "sticky": 1,
        },
        {
            "no": 101,
            "resto": 100,
            "now": "10/18/26(Sun)12:01:00",
            "time": 1792324860,
            "name": "Anonymous",
            "com": '<a href="#p100" class="quotelink">&gt;&gt;100</a><br>May I ask why monke sad?',
        },
        {
            "no": 102,
            "resto": 100,
            "now": "10/18/26(Sun)12:02:00",
            "time": 1792324920,
            "trip": "!Ep8pui8Vw2",
            "com": '<a href="#p100" class="quotelink">&gt;&gt;100</a> <a href="#p101" class="quotelink">&gt;&gt;101</a>',
            "unknown_field": {"ignored": True},
        },
    ]
}

CATALOG_JSON = [
    {
        "page": 1,
        "threads": [
            {
                "no": 300,
                "now": "10/18/26(Sun)11:00:00",
                "time": 1792321200,
                "com": "bumped last",
                "replies": 1,
                "images": 0,
                "last_replies": [
                    {"no": 301, "resto": 300, "com": '<a href="#p300" class="quotelink">&gt;&gt;300</a>'}
                ],
            },
            {"no": 200, "now": "10/18/26(Sun)10:00:00", "time": 1792317600, "sub": "older"},
        ],
    },
    {"page": 2, "threads": []},
]

BOARDS_JSON = {
    "boards": [
        {
            "board": "g",
            "title": "Technology",
            "ws_board": 1,
            "per_page": 15,
            "pages": 10,
            "max_filesize": 4194304,
            "max_comment_chars": 2000,
            "bump_limit": 310,
            "image_limit": 150,
            "cooldowns": {"threads": 600, "replies": 60, "images": 60},
            "meta_description": "&quot;/g/ - Technology&quot; is 4chan's board for technology.",
            "code_tags": 1,
        },
        {"board": "b", "title": "Random", "ws_board": 0},
        {"title": "no code, skipped"},
    ]
}


@pytest.fixture
def thread_json():
    return copy.deepcopy(THREAD_JSON)


@pytest.fixture
def catalog_json():
    return copy.deepcopy(CATALOG_JSON)


@pytest.fixture
def boards_json():
    return copy.deepcopy(BOARDS_JSON)
