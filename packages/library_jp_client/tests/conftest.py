"""Shared fixtures: canned portal pages and a fake portal behind httpx.MockTransport."""

from __future__ import annotations

from typing import Callable, Optional
from urllib.parse import parse_qs

import httpx
import pytest

BASE_URL = "https://opac.example.jp"

ENTRY_HTML = """
<html><head><title>蔵書検索トップ</title></head><body>
<a href="/winj/opac/login.do">ログイン</a>
<a href="/winj/opac/search-simple.do">簡易検索</a>
</body></html>
"""

LOGIN_FORM_HTML = """
<html><head><title>ログイン</title></head><body>
<form name="LoginForm" method="post" action="/winj/opac/login-auth.do">
  <input type="hidden" name="hash" value="a1b2c3d4">
  <input type="hidden" name="returnPage" value="mypage">
  <label>利用者番号 <input type="text" name="txt_usercd" value=""></label>
  <label>パスワード <input type="password" name="txt_password" value=""></label>
  <input type="submit" value="ログイン">
</form>
</body></html>
"""

LOGIN_REJECTED_HTML = """
<html><head><title>ログイン</title></head><body>
<div class="error">利用者番号またはパスワードが正しくありません。</div>
<form name="LoginForm" method="post" action="/winj/opac/login-auth.do">
  <input type="hidden" name="hash" value="a1b2c3d4">
  <input type="text" name="txt_usercd" value="">
  <input type="password" name="txt_password" value="">
</form>
</body></html>
"""

MYPAGE_HTML = """
<html><head><title>利用者メニュー</title></head><body>
<ul class="menu">
  <li><a href="/winj/opac/lend-list.do?lang=0">貸出状況一覧</a></li>
  <li><a href="/winj/opac/reserve-list.do">予約状況一覧</a></li>
  <li><a href="/winj/opac/logout.do">ログアウト</a></li>
</ul>
</body></html>
"""

LISTING_HTML = """
<html><head><title>貸出状況一覧</title></head><body>
<p>ログアウト</p>
<table class="list">
  <tr><th>No.</th><th>資料名</th><th>著者</th><th>貸出日</th><th>返却期限日</th></tr>
  <tr>
    <td>1</td>
    <td><strong class="title"><a href="/winj/opac/switch-detail.do?bibid=1">Book A</a></strong></td>
    <td>Author One</td>
    <td>2024/05/21</td>
    <td class="due">2024/06/04</td>
  </tr>
  <tr>
    <td>2</td>
    <td><strong class="title"><a href="/winj/opac/switch-detail.do?bibid=2">はらぺこあおむし &amp; なかまたち</a></strong></td>
    <td>エリック・カール</td>
    <td>2024/05/19</td>
    <td class="due">2024/06/02</td>
  </tr>
  <tr>
    <td>3</td>
    <td><strong class="title"><a href="/winj/opac/switch-detail.do?bibid=3">Book C</a></strong></td>
    <td>Author Three</td>
    <td>2024/05/27</td>
    <td class="due">2024/06/10</td>
  </tr>
</table>
</body></html>
"""

EMPTY_LISTING_HTML = """
<html><head><title>貸出状況一覧</title></head><body>
<p>ログアウト</p>
<p>現在、貸出中の資料はありません。</p>
</body></html>
"""

TIMEOUT_HTML = """
<html><head><title>タイムアウトしました</title></head><body>
<p>一定時間操作がなかったため、セッションがタイムアウトしました。</p>
</body></html>
"""


class FakePortal:
    """
    Minimal stand-in for the OPAC.

    Serves the entry, login form, landing and listing pages, and answers
    each login POST with the next entry of ``login_results``:
    "success" (redirect to the landing page with a new session cookie),
    "rejected" (login form again, no cookie) or "ambiguous" (blank page,
    no cookie).
    """

    def __init__(
        self,
        login_results: Optional[list[str]] = None,
        listing_html: str = LISTING_HTML,
        set_entry_cookie: bool = True,
    ):
        self.login_results = list(login_results or ["success"])
        self.listing_html = listing_html
        self.set_entry_cookie = set_entry_cookie
        self.requests: list[httpx.Request] = []
        self.login_posts: list[dict[str, list[str]]] = []
        self.overrides: dict[str, Callable[[httpx.Request], httpx.Response]] = {}

    @property
    def request_count(self) -> int:
        return len(self.requests)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path in self.overrides:
            return self.overrides[path](request)

        if path == "/winj/opac/top.do":
            headers = {"Set-Cookie": "JSESSIONID=anon; Path=/"} if self.set_entry_cookie else {}
            return httpx.Response(200, html=ENTRY_HTML, headers=headers)

        if path == "/winj/opac/login.do":
            return httpx.Response(200, html=LOGIN_FORM_HTML)

        if path == "/winj/opac/login-auth.do" and request.method == "POST":
            self.login_posts.append(parse_qs(request.content.decode()))
            result = self.login_results.pop(0) if self.login_results else "rejected"
            if result == "success":
                return httpx.Response(
                    302,
                    headers={
                        "Location": "/winj/opac/mypage.do",
                        "Set-Cookie": "JSESSIONID=auth1; Path=/",
                    },
                )
            if result == "ambiguous":
                return httpx.Response(200, html="<html><body><p>処理中です</p></body></html>")
            return httpx.Response(200, html=LOGIN_REJECTED_HTML)

        if path == "/winj/opac/mypage.do":
            return httpx.Response(
                200,
                html=MYPAGE_HTML,
                headers={"Set-Cookie": "JSESSIONID=auth2; Path=/"},
            )

        if path == "/winj/opac/lend-list.do":
            return httpx.Response(200, html=self.listing_html)

        return httpx.Response(404, html="<html><body>Not Found</body></html>")


@pytest.fixture
def portal() -> FakePortal:
    return FakePortal()
