# een9

een9 is a compact HTTP server engine. It is a library to build a server with. It is not a command-line program. It has these parts:

- **A threaded main loop.** `een9.mainloop.run_mainloop` listens on IPv4, IPv6 and Unix-domain addresses. It passes each accepted connection to a pool of worker threads.
- **An incremental HTTP request parser.** `een9.client_request.ClientRequestParser` takes its input as bytes. Responses are built with the helpers in `een9.response_gen`.
- **An admin-control protocol** in `een9.admin_control`. Each message is a magic string, then an 8-byte big-endian length, then the body.
- **Header and form helpers:**
  - `een9.cookies` parses `Cookie` headers and forms `Set-Cookie` lines.
  - `een9.accept_language` parses `Accept-Language` headers.
  - `een9.urlencoded_query` splits `application/x-www-form-urlencoded` data.
- **A static asset store.** `een9.static_assets.StaticAssetStore` loads files from directories according to postfix rules and looks them up by URL.
- **A templating engine.** `een9.templater.Templater` handles `{% ... %}` blocks: `ELDEF`, `FOR`, `REF`, `PUT`, `WRITE` and `ROUGHINSERT`.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Socket addresses

```python
from een9.socket_address import parse_socket_address, stringify_socket_address

addr = parse_socket_address("[::a:a:0:0:0:0]:413")
print(stringify_socket_address(addr))   # [0:0:a:a::]:413
```

`parse_socket_address` also accepts `127.0.0.1:8080` and `unix:/run/app.sock`. It raises `ValueError` on malformed text.

## Parsing a request

```python
from een9.client_request import ClientRequestParser, ParseStatus

parser = ClientRequestParser()
status = parser.feed(b"GET /index?x=1 HTTP/1.1\r\nHost: example.com\r\n\r\n")
assert status is ParseStatus.COMPLETE
request = parser.request
print(request.method, request.uri_path, request.uri_query)
```

When the request has a `Content-Length` header, the parser reads that many bytes of body into `request.body`. Input that cannot be a valid request gives `ParseStatus.ERROR`.

## Building responses

```python
from een9.response_gen import response_200, response_303

page = response_200("text/html", "<p>hello</p>")   # bytes
redirect = response_303("/login")
```

## Static assets

```python
from een9.static_assets import AssetRule, PostfixFilter, StaticAssetStore

store = StaticAssetStore([
    AssetRule("assets/css", "/css", [PostfixFilter(".css", "text/css")]),
])
store.update()
asset = store.get_asset("/css/site.css")   # KeyError if not published
print(asset.type, len(asset.content))
```

## Templates

Each `*.nytl.html` file under the template directory defines one or more elements. An element named `main` takes the file's own name:

```
{% ELDEF main JSON user %}
<p>Hello, {% WRITE user.name %}</p>
{% ENDELDEF %}
```

A file ending in a plain `.html` becomes a single element, with its content taken verbatim. If the file above is saved as `templates/greeting.nytl.html`, render it like this:

```python
from een9.template_model import DetourRules, TemplaterSettings
from een9.templater import Templater

templater = Templater(TemplaterSettings(det=DetourRules(root_dir_path="templates")))
templater.update()
html = templater.render("greeting", [{"name": "<Alice>"}])
```

`WRITE` HTML-escapes the value it inserts. `ROUGHINSERT` inserts the value unchanged. A problem while loading or rendering raises `een9.text_utils.TemplateError`. To see what was loaded, call `een9.template_debug.debug_print_templater(templater)`.

## Running a server

```python
import threading
from een9.mainloop import MainloopParameters, run_mainloop
from een9.response_gen import response_200
from een9.socket_address import parse_socket_address

params = MainloopParameters(
    client_regular_listened=[parse_socket_address("127.0.0.1:8080")],
    guest_core=lambda task, request, worker_id: response_200("text/plain", "ok"),
    guest_core_admin_control=lambda task, body, worker_id: "ok",
)
stop = threading.Event()
run_mainloop(params, stop)   # blocks until stop.set() is called from another thread
```

## What it does not do

een9 has no command-line program, no application logic and no storage. You supply the request handlers (`guest_core` and `guest_core_admin_control`), and they decide what the server answers. een9 also has no client for the admin-control protocol. It only provides the framing helpers (`generate_admin_control_request`, `AdminControlResponseReceiver`) needed to write one.