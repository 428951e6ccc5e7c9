"""Tests for platform feed extractors (JSON APIs and inline data)."""

import json

from event_scraper.extractors.aeg_axs import AegAxsExtractor, build_title, format_price
from event_scraper.extractors.dostuff import DoStuffExtractor
from event_scraper.extractors.firebase import FirebaseExtractor, parse_js_date
from event_scraper.extractors.freshtix import FreshtixExtractor
from event_scraper.extractors.opendate import OpenDateExtractor
from event_scraper.extractors.red_rocks import RedRocksExtractor
from event_scraper.extractors.squarespace import SquarespaceExtractor, with_format_json
from event_scraper.extractors.wix import WixEventsExtractor
from event_scraper.extractors.wordpress import WordPressExtractor, detect_format

SOURCE = "https://venue.example.com/events"


AEG_FEED = {
    "meta": {"total": 1},
    "events": [{
        "title": {"headlinersText": "Tame Impala", "supportingText": "Dominic Fike", "tour": "Slow Rush Tour"},
        "eventDateTimeISO": "2030-09-12T20:00:00-06:00",
        "doorDateTime": "2030-09-12T19:00:00-06:00",
        "venue": {"title": "Mission Ballroom", "address": "4242 Wynkoop St", "city": "Denver", "state": "CO",
                  "postalCode": "80216", "countryCode": "US"},
        "ticketPriceLow": 45,
        "ticketPriceHigh": 85,
        "media": {"17": {"file_name": "https://aeg.example.com/17.jpg"}},
        "ticketing": {"url": "https://www.axs.com/events/1", "statusId": 7},
        "age": "16+",
    }],
}


class TestAegAxs:
    def test_direct_feed(self, make_client):
        extractor = AegAxsExtractor(make_client())
        content = json.dumps(AEG_FEED)
        assert extractor.can_handle(content)
        event = extractor.extract(content, SOURCE)[0]
        assert event.title == "Tame Impala with Dominic Fike - Slow Rush Tour"
        assert (event.start_date, event.start_time, event.doors_time) == ("2030-09-12", "20:00", "19:00")
        assert event.venue_name == "Mission Ballroom"
        assert event.price == "$45.00 - $85.00"
        assert event.image_url == "https://aeg.example.com/17.jpg"
        assert event.offer_availability == "SoldOut"
        assert event.age_restriction == "16+"

    def test_data_file_reference_is_fetched(self, make_client):
        feed_url = "https://aegwebprod.blob.core.windows.net/json/events/1/events.json"
        client = make_client({feed_url: json.dumps(AEG_FEED)})
        page = f'<div class="c-axs-events" data-file="{feed_url}"></div>'
        events = AegAxsExtractor(client).extract(page, SOURCE)
        assert len(events) == 1
        assert client.urls == [feed_url]

    def test_title_and_price_helpers(self):
        assert build_title({"title": {"headlinersText": "Solo"}}) == "Solo"
        assert format_price(20, 20) == "$20.00"
        assert format_price(0, 0) == ""


RED_ROCKS_PAGE = """
<html><body><a href="https://www.redrocksonline.com/">Red Rocks</a>
<h2 class="month-header">June 2030</h2>
<div class="card card-event" data-category="4">
  <h3 class="card-title">Blues Traveler</h3>
  <div class="card-date">Sat, Jun 14, 7:30 pm</div>
  <p class="card-text">Summer tour</p>
  <img data-image="https://redrocks.example.com/bt.jpg">
  <a class="btn btn-white" href="https://www.axs.com/events/99">Buy Tickets</a>
</div>
</body></html>
"""


class TestRedRocks:
    def test_card(self):
        extractor = RedRocksExtractor()
        assert extractor.can_handle(RED_ROCKS_PAGE)
        event = extractor.extract(RED_ROCKS_PAGE, SOURCE)[0]
        assert event.title == "Blues Traveler"
        assert (event.start_date, event.start_time) == ("2030-06-14", "19:30")
        assert event.description == "Summer tour"
        assert event.venue_name == "Red Rocks Amphitheatre"
        assert event.venue_city == "Morrison"
        assert event.image_url == "https://redrocks.example.com/bt.jpg"
        assert event.ticket_url == "https://www.axs.com/events/99"
        assert event.event_type == "Concert"


FRESHTIX_PAGE = """
<html><head>
<script type="application/ld+json">{"@type": "Organization", "name": "The Basement East",
 "address": {"streetAddress": "917 Woodland St", "addressLocality": "Nashville",
             "addressRegion": "TN", "postalCode": "37206"}}</script>
<script src="https://freshtix.com/widget.js"></script>
<script>var events = {"2030-03-01": [{"name": "Local Natives", "start_datetime": "2030-03-01T20:00:00",
  "event_url": "https://freshtix.com/events/local-natives?ref=venue", "image_url": "/images/ln.jpg"}]};</script>
</head><body></body></html>
"""


class TestFreshtix:
    def test_inline_events(self):
        extractor = FreshtixExtractor()
        assert extractor.can_handle(FRESHTIX_PAGE)
        event = extractor.extract(FRESHTIX_PAGE, SOURCE)[0]
        assert event.title == "Local Natives"
        assert (event.start_date, event.start_time) == ("2030-03-01", "20:00")
        assert event.venue_name == "The Basement East"
        assert event.venue_zip == "37206"
        assert event.ticket_url == "https://freshtix.com/events/local-natives"
        assert event.image_url == "https://venue.example.com/images/ln.jpg"


FIREBASE_PAGE = """
<script src="https://www.gstatic.com/firebasejs/8.10.0/firebase-app.js"></script>
<script>var firebaseConfig = { apiKey: "x", databaseURL: "https://venue-db.firebaseio.com" };</script>
"""


class TestFirebase:
    def test_published_events_only(self, make_client):
        records = {
            "-a": {"metadata": {"title": "Trivia", "isPublished": True,
                                "date": "Wed Sep 11 2030 18:30:00 GMT-0500 (Central Daylight Time)",
                                "ticketLink": "https://tix.example.com/trivia", "door": "$5"}},
            "-b": {"metadata": {"title": "Draft", "isPublished": False}},
        }
        client = make_client({"https://venue-db.firebaseio.com/events.json": json.dumps(records)})
        extractor = FirebaseExtractor(client)
        assert extractor.can_handle(FIREBASE_PAGE)
        events = extractor.extract(FIREBASE_PAGE, SOURCE)
        assert [e.title for e in events] == ["Trivia"]
        assert (events[0].start_date, events[0].start_time) == ("2030-09-11", "18:30")
        assert events[0].price == "$5"

    def test_js_date_keeps_wall_clock(self):
        assert parse_js_date("Fri Jan 03 2031 21:15:00 GMT-0700 (Mountain Standard Time)") == ("2031-01-03", "21:15")


SQUARESPACE_PAGE = """
<html><head><title>Events — Skylark</title></head><body>
<script>Static.SQUARESPACE_CONTEXT = {"siteTitle": "Skylark Lounge", "timeZone": "America/Denver",
  "website": {"timeZone": "America/Denver"}};</script>
<article class="eventlist-event"><h1 class="eventlist-title"><a href="/events/jazz">Jazz Trio</a></h1>
<time class="event-date" datetime="2030-02-03">Feb 3</time></article>
<footer>140 S Broadway<br>Denver, CO 80209</footer>
</body></html>
"""


class TestSquarespace:
    def test_json_view(self, make_client):
        data = {
            "collection": {"title": "Events"},
            "items": [{
                "title": "Bluegrass Night",
                "startDate": 1893546000000,
                "endDate": 1893556800000,
                "fullUrl": "/events/bluegrass",
                "assetUrl": "https://images.squarespace-cdn.com/b.jpg",
            }],
        }
        client = make_client({with_format_json(SOURCE): json.dumps(data)})
        event = SquarespaceExtractor(client).extract(SQUARESPACE_PAGE, SOURCE)[0]
        assert event.title == "Bluegrass Night"
        # Millisecond epochs land in the site's zone
        assert (event.start_date, event.start_time) == ("2030-01-01", "18:00")
        assert event.end_time == "21:00"
        assert event.venue_name == "Skylark Lounge"
        assert event.venue_city == "Denver"
        assert event.source_url == "https://venue.example.com/events/bluegrass"

    def test_falls_back_to_rendered_list(self, make_client):
        events = SquarespaceExtractor(make_client()).extract(SQUARESPACE_PAGE, SOURCE)
        assert [e.title for e in events] == ["Jazz Trio"]
        assert events[0].start_date == "2030-02-03"

    def test_format_json_url(self):
        assert with_format_json("https://a.example.com/events?view=list") == "https://a.example.com/events?view=list&format=json"


def wix_page(events: list) -> str:
    data = {"appsWarmupData": {"140603ad": {"widget1": {"events": {"events": events}}}}}
    return f'<html><script type="application/json" id="wix-warmup-data">{json.dumps(data)}</script></html>'


class TestWix:
    def test_scheduling_and_location(self):
        raw = {
            "title": "Salsa Night",
            "description": "Dance lessons at 8",
            "scheduling": {"config": {"startDate": "2030-06-01T01:00:00.000Z",
                                      "endDate": "2030-06-01T04:00:00.000Z",
                                      "timeZoneId": "America/Chicago"}},
            "location": {
                "name": "Club Rio",
                "address": "100 Main St, Austin, TX",
                "fullAddress": {"city": "Austin", "subdivision": "TX", "postalCode": "78701", "country": "US",
                                "streetAddress": {"number": "100", "name": "Main St"}},
                "coordinates": {"lat": 30.26, "lng": -97.74},
            },
            "registration": {"external": {"registration": "https://tix.example.com/salsa"}},
            "mainImage": {"url": "https://static.wixstatic.com/s.jpg"},
        }
        page = wix_page([raw])
        extractor = WixEventsExtractor()
        assert extractor.can_handle(page)
        event = extractor.extract(page, SOURCE)[0]
        assert (event.start_date, event.start_time) == ("2030-05-31", "20:00")
        assert event.end_time == "23:00"
        assert event.venue_timezone == "America/Chicago"
        assert event.venue_address == "100 Main St"
        assert event.venue_state == "TX"
        assert event.venue_coordinates == "30.26,-97.74"
        assert event.ticket_url == "https://tix.example.com/salsa"

    def test_unscheduled_event_keeps_its_neighbours(self):
        events = [
            {"title": "Wix Show", "scheduling": {"config": "TBD"}},
            {"title": "Tango", "scheduling": {"config": {"startDate": "2030-06-02T01:00:00.000Z"}}},
        ]
        extracted = WixEventsExtractor().extract(wix_page(events), SOURCE)
        assert [e.title for e in extracted] == ["Wix Show", "Tango"]
        assert extracted[0].start_date == ""
        assert extracted[1].start_date == "2030-06-02"


TRIBE_V1 = {
    "events": [
        {
            "title": "Open Mic",
            "description": "<p>Bring guitars</p>",
            "start_date": "2030-04-05 19:00:00",
            "end_date": "2030-04-05 22:00:00",
            "start_date_details": {"hour": "19", "minutes": "00"},
            "venue": {"venue": "The Cave", "address": "452 W Franklin St", "city": "Chapel Hill",
                      "state": "NC", "zip": "27516"},
            "cost": "$10",
            "url": "https://venue.example.com/event/open-mic/",
        },
        {"title": "No Date"},
    ],
    "rest_url": "https://venue.example.com/wp-json/tribe/events/v1/events",
    "total_pages": 1,
}


class TestWordPress:
    """The Events Calendar REST formats and endpoint discovery."""

    def test_tribe_v1_json(self, make_client):
        extractor = WordPressExtractor(make_client())
        content = json.dumps(TRIBE_V1)
        assert extractor.can_handle(content)
        events = extractor.extract(content, SOURCE)
        assert [e.title for e in events] == ["Open Mic"]
        event = events[0]
        assert (event.start_date, event.start_time, event.end_time) == ("2030-04-05", "19:00", "22:00")
        assert event.venue_name == "The Cave"
        assert event.venue_city == "Chapel Hill"
        assert event.price == "$10"
        assert event.event_type == "Event"
        assert event.ticket_url == "https://venue.example.com/event/open-mic/"

    def test_discovers_endpoint_from_markup(self, make_client):
        api = "https://venue.example.com/wp-json/tribe/events/v1/events?per_page=100"
        client = make_client({api: json.dumps(TRIBE_V1)})
        page = '<html><div class="tribe-events-view tribe-common"></div></html>'
        extractor = WordPressExtractor(client)
        assert extractor.can_handle(page)
        assert [e.title for e in extractor.extract(page, SOURCE)] == ["Open Mic"]
        assert client.urls == [api]

    def test_tribe_wp_posts(self, make_client):
        posts = [{"id": 1, "title": {"rendered": "Soul Night"},
                  "meta": {"_EventStartDate": "2030-04-07 21:00:00", "_VenueName": "Motorco"}}]
        assert detect_format(posts) == "tribe_wp"
        event = WordPressExtractor(make_client()).extract(json.dumps(posts), SOURCE)[0]
        assert (event.title, event.venue_name) == ("Soul Night", "Motorco")
        assert event.end_date == "2030-04-07"

    def test_generic_posts(self, make_client):
        posts = [{"id": 5, "title": {"rendered": "Poetry Slam"}, "content": {"rendered": "<p>Words</p>"},
                  "date": "2030-04-06T19:00:00", "link": "https://venue.example.com/poetry"}]
        assert detect_format(posts) == "generic_wp"
        event = WordPressExtractor(make_client()).extract(json.dumps(posts), SOURCE)[0]
        assert event.title == "Poetry Slam"
        assert event.description == "Words"
        assert event.ticket_url == "https://venue.example.com/poetry"

    def test_skipped_domain(self, make_client):
        assert WordPressExtractor(make_client()).extract(json.dumps(TRIBE_V1), "https://www.resoundpresents.com/") == []


DOSTUFF_FEED = {
    "event_groups": [{
        "day": "2030-05-10",
        "events": [{
            "title": "Gary Clark Jr.",
            "description": "<p>Blues</p>",
            "begin_time": "2030-05-10T20:00:00-05:00",
            "end_time": "2030-05-10T23:00:00-05:00",
            "buy_url": "https://tix.example.com/gcj",
            "venue": {"title": "Stubb's", "address": "801 Red River St", "city": "Austin", "state": "TX",
                      "zip": "78701", "latitude": 30.268, "longitude": -97.736},
            "imagery": {"aws": {"cover_image_w_1200_h_450": "https://dostuff.example.com/c.jpg"}},
            "is_free": True,
            "artists": [{"title": "Gary Clark Jr."}, {"title": "Opener"}],
            "permalink": "/events/2030/5/10/gary-clark-jr",
        }],
    }],
}


class TestDoStuff:
    def test_event_groups(self):
        extractor = DoStuffExtractor()
        content = json.dumps(DOSTUFF_FEED)
        assert extractor.can_handle(content)
        event = extractor.extract(content, "https://do512.com/events/today.json")[0]
        assert (event.start_date, event.start_time) == ("2030-05-10", "20:00")
        assert event.description == "Blues"
        assert event.venue_name == "Stubb's"
        assert event.venue_coordinates == "30.268,-97.736"
        assert event.image_url == "https://dostuff.example.com/c.jpg"
        assert event.price == "Free"
        assert event.performer == "Gary Clark Jr., Opener"
        assert event.source_url == "https://do512.com/events/2030/5/10/gary-clark-jr"


OPENDATE_LISTING = '<div class="confirm-card"><a class="stretched-link" href="/e/fleet-foxes-2030"></a></div>'
OPENDATE_DETAIL = """
<html><head>
<script type="application/ld+json">{"@type": "Event", "name": "Fleet Foxes", "startDate": "2030-10-01T00:00:00",
 "location": {"name": "Cannery Hall", "address": {"streetAddress": "1 Cannery Row",
   "addressLocality": "Nashville", "addressRegion": "TN"}},
 "performer": [{"name": "Fleet Foxes"}, {"name": "Uwade"}],
 "offers": [{"url": "https://tix.example.com/ff", "price": "40"}]}</script>
</head><body>
<script type="application/json" class="js-react-on-rails-component" data-component-name="AddConfirmToCalendar">
{"confirm": {"start_time": "2030-10-01T20:00:00-05:00", "end_time_for_calendar": "2030-10-01T23:00:00-05:00"}}
</script>
<img src="https://maps.googleapis.com/maps/api/staticmap?center=36.15,-86.77&zoom=15">
</body></html>
"""


class TestOpenDate:
    def test_detail_pages(self, make_client):
        detail_url = "https://app.opendate.io/e/fleet-foxes-2030"
        client = make_client({detail_url: OPENDATE_DETAIL})
        extractor = OpenDateExtractor(client)
        assert extractor.can_handle(OPENDATE_LISTING)
        event = extractor.extract(OPENDATE_LISTING, SOURCE)[0]
        assert event.title == "Fleet Foxes"
        assert (event.start_date, event.start_time, event.end_time) == ("2030-10-01", "20:00", "23:00")
        assert event.venue_name == "Cannery Hall"
        assert event.venue_coordinates == "36.15,-86.77"
        assert event.performer == "Fleet Foxes, Uwade"
        assert event.ticket_url == "https://tix.example.com/ff"
        assert event.source_url == detail_url

    def test_unavailable_detail_skipped(self, make_client):
        assert OpenDateExtractor(make_client()).extract(OPENDATE_LISTING, SOURCE) == []
