"""
Response decoder tests: JSONP envelopes, HTML fields and markers.
"""

import unittest

from bjut_auth.decoder import (
    GENERIC_DECODE_MESSAGE,
    contains_success_marker,
    decode_jsonp,
    extract_html_field,
    extract_script_variable,
    extract_title,
)
from bjut_auth.errors import DecodeError


class TestDecodeJsonp(unittest.TestCase):

    def test_eportal_callback(self):
        data = decode_jsonp('dr1003({"result":1,"msg":"Portal协议认证成功！"});')
        self.assertEqual(data["result"], 1)
        self.assertEqual(data["msg"], "Portal协议认证成功！")

    def test_callback_without_semicolon(self):
        self.assertEqual(decode_jsonp('dr1002({"result":"1"})'), {"result": "1"})

    def test_jquery_style_callback_and_whitespace(self):
        body = '\n  jQuery11240_1699999({"result": 0, "ret_code": 2}) ;\n'
        self.assertEqual(decode_jsonp(body), {"result": 0, "ret_code": 2})

    def test_payload_containing_parentheses(self):
        data = decode_jsonp('dr1003({"msg":"error (code 3)"})')
        self.assertEqual(data["msg"], "error (code 3)")

    def test_bare_json(self):
        self.assertEqual(decode_jsonp('{"result": 1}'), {"result": 1})

    def test_html_payload_reports_title(self):
        body = "dr1003(<html><head><title>502 Bad Gateway</title></head><body></body></html>)"
        with self.assertRaises(DecodeError) as ctx:
            decode_jsonp(body)
        self.assertEqual(str(ctx.exception), "502 Bad Gateway")

    def test_garbage_without_title_is_generic(self):
        with self.assertRaises(DecodeError) as ctx:
            decode_jsonp("dr1003(not json at all)")
        self.assertEqual(str(ctx.exception), GENERIC_DECODE_MESSAGE)

    def test_empty_body(self):
        with self.assertRaises(DecodeError):
            decode_jsonp("")


class TestHtmlHelpers(unittest.TestCase):

    def test_extract_html_field(self):
        body = (
            '<form><input type="hidden" name="other" value="x">'
            '<input type="hidden" name="v6ip" value="2001:da8:216::5"></form>'
        )
        self.assertEqual(extract_html_field(body, "v6ip"), "2001:da8:216::5")

    def test_extract_html_field_self_closing_first_match(self):
        body = '<input name="v6ip" value="first"/><input name="v6ip" value="second"/>'
        self.assertEqual(extract_html_field(body, "v6ip"), "first")

    def test_extract_html_field_missing(self):
        self.assertIsNone(extract_html_field("<html><body>nothing</body></html>", "v6ip"))

    def test_extract_html_field_without_value(self):
        self.assertEqual(extract_html_field('<input name="v6ip">', "v6ip"), "")

    def test_contains_success_marker(self):
        self.assertTrue(contains_success_marker("<p>You have successfully logged into our system</p>",
                                                "successfully logged into our system"))
        self.assertFalse(contains_success_marker("<p>Password error</p>", "successfully logged"))
        self.assertFalse(contains_success_marker("anything", ""))

    def test_extract_title(self):
        self.assertEqual(extract_title("<TITLE>\n  Login  failed </TITLE>"), "Login failed")
        self.assertIsNone(extract_title("<title></title>"))

    def test_extract_script_variable(self):
        body = "<script>var ss5=\"x\"; v46ip='10.21.88.7'; </script>"
        self.assertEqual(extract_script_variable(body, "v46ip"), "10.21.88.7")
        self.assertIsNone(extract_script_variable(body, "v4serip"))


if __name__ == "__main__":
    unittest.main()
