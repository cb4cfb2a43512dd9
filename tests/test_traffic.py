"""
Dormitory traffic/quota reader.
"""

import unittest
from unittest.mock import Mock

import requests

from bjut_auth.errors import DecodeError, QueryError, TransportError
from bjut_auth.settings import DEFAULT_SETTINGS
from bjut_auth.traffic import PLAN_QUOTAS, UNKNOWN, parse_user_info, query_traffic
from tests.helpers import jsonp, make_response


class TestParseUserInfo(unittest.TestCase):

    def test_known_plan(self):
        plan = next(iter(PLAN_QUOTAS))
        body = jsonp(
            '{"result":1,"user_info":{"service_name":"%s","used_flow":"12.5 GB","balance":"18.00"}}' % plan,
            callback="dr1005",
        )

        info = parse_user_info(body)

        self.assertEqual(info.plan, plan)
        self.assertEqual(info.total_traffic, PLAN_QUOTAS[plan])
        self.assertEqual(info.used_traffic, "12.5 GB")
        self.assertEqual(info.balance, "18.00")

    def test_unknown_plan_keeps_other_fields(self):
        body = jsonp(
            '{"result":1,"user_info":{"service_name":"试用套餐","used_flow":"3.2 GB","balance":"5.50"}}',
            callback="dr1005",
        )

        info = parse_user_info(body)

        self.assertEqual(info.total_traffic, UNKNOWN)
        self.assertEqual(info.used_traffic, "3.2 GB")
        self.assertEqual(info.balance, "5.50")

    def test_missing_fields_are_unknown(self):
        info = parse_user_info(jsonp('{"result":1,"user_info":{"service_name":""}}'))

        self.assertEqual(info.used_traffic, UNKNOWN)
        self.assertEqual(info.balance, UNKNOWN)
        self.assertEqual(info.total_traffic, UNKNOWN)

    def test_numeric_fields_are_stringified(self):
        info = parse_user_info(jsonp('{"user_info":{"used_flow":1024,"balance":0}}'))

        self.assertEqual(info.used_traffic, "1024")
        self.assertEqual(info.balance, "0")

    def test_empty_user_info_is_all_unknown(self):
        info = parse_user_info(jsonp('{"user_info":{}}', callback="dr1005"))

        self.assertEqual(info.used_traffic, UNKNOWN)
        self.assertEqual(info.total_traffic, UNKNOWN)
        self.assertEqual(info.balance, UNKNOWN)
        self.assertEqual(info.plan, "")

    def test_no_user_info(self):
        with self.assertRaises(QueryError):
            parse_user_info(jsonp('{"result":0,"msg":"未登录"}'))

    def test_not_json(self):
        with self.assertRaises(DecodeError):
            parse_user_info("dr1005(<html><title>Not Found</title></html>)")


class TestQueryTraffic(unittest.TestCase):

    def test_query(self):
        session = Mock()
        session.request.return_value = make_response(
            jsonp('{"user_info":{"service_name":"x","used_flow":"1 GB","balance":"2"}}', callback="dr1005")
        )

        info = query_traffic(session=session, settings=DEFAULT_SETTINGS, logger=Mock())

        self.assertEqual(info.used_traffic, "1 GB")
        method, url = session.request.call_args.args
        self.assertEqual(method, "GET")
        self.assertEqual(url, DEFAULT_SETTINGS["dormitory"]["eportal_url"] + "/page/loadUserInfo")
        self.assertEqual(session.request.call_args.kwargs["params"]["callback"], "dr1005")
        self.assertEqual(
            session.request.call_args.kwargs["timeout"],
            DEFAULT_SETTINGS["http"]["login_timeout_seconds"],
        )

    def test_transport_error(self):
        session = Mock()
        session.request.side_effect = requests.ConnectionError("Connection refused")

        with self.assertRaises(TransportError):
            query_traffic(session=session, settings=DEFAULT_SETTINGS, logger=Mock())

    def test_http_error_status(self):
        session = Mock()
        session.request.return_value = make_response("", status_code=503)

        with self.assertRaises(TransportError) as ctx:
            query_traffic(session=session, settings=DEFAULT_SETTINGS, logger=Mock())

        self.assertIn("503", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
