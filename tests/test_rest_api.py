"""
Tests for the REST API.
"""

import threading
import unittest

from stockmarket.api.rest_api import create_app
from stockmarket.core.matching_engine import MatchingEngine


class TestRestApi(unittest.TestCase):
    """Test cases for the Flask endpoints."""

    def setUp(self):
        """Set up test fixtures."""
        self.engine = MatchingEngine()
        self.app = create_app(self.engine)
        self.app.config['TESTING'] = True
        self.client = self.app.test_client()

    def _submit(self, side, quantity, price, trader_id):
        return self.client.post('/orders', json={
            'side': side, 'quantity': quantity, 'price': price, 'trader_id': trader_id
        })

    def test_health(self):
        """Test the health endpoint."""
        response = self.client.get('/health')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()['status'], 'healthy')

    def test_submit_order(self):
        """Test order submission returns the fill breakdown."""
        self._submit('sell', 10, 50.00, 1)
        response = self._submit('buy', 15, 51.00, 2)

        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertEqual(data['sequence'], 1)
        self.assertEqual(data['filled_quantity'], 10)
        self.assertEqual(data['resting_quantity'], 5)
        self.assertEqual(len(data['trades']), 1)
        self.assertEqual(data['trades'][0]['sell_trader_id'], 1)
        self.assertAlmostEqual(data['bank'], 10.0)

    def test_submit_invalid_order(self):
        """Test invalid orders are rejected without touching the engine."""
        for body in (
            {'side': 'hold', 'quantity': 1, 'price': 1, 'trader_id': 1},
            {'side': 'buy', 'quantity': 0, 'price': 1, 'trader_id': 1},
            {'side': 'buy', 'quantity': 1, 'price': -1, 'trader_id': 1},
            {'side': 'buy', 'quantity': 1, 'price': 1},
        ):
            response = self.client.post('/orders', json=body)
            self.assertEqual(response.status_code, 400)
            self.assertIn('error', response.get_json())

        response = self.client.post('/orders', data='not json', content_type='text/plain')
        self.assertEqual(response.status_code, 400)

        self.assertEqual(self.engine.next_sequence, 0)

    def test_orderbook(self):
        """Test the combined and per-side book views."""
        self._submit('buy', 5, 40.0, 1)
        self._submit('sell', 3, 45.0, 2)

        data = self.client.get('/orderbook').get_json()
        self.assertEqual(data['best_bid'], 40.0)
        self.assertEqual(data['best_ask'], 45.0)

        response = self.client.get('/orderbook/sell')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()['total_quantity'], 3)

        self.assertEqual(self.client.get('/orderbook/middle').status_code, 400)

    def test_ledger(self):
        """Test ledger listing and single-record lookups."""
        self._submit('sell', 2, 10.0, 1)
        self._submit('buy', 2, 10.0, 2)

        data = self.client.get('/ledger').get_json()
        self.assertEqual(data['count'], 2)
        self.assertEqual(sorted(data['records']), ['1', '2'])

        record = self.client.get('/ledger/2').get_json()
        self.assertEqual(record['holdings'], 2)
        self.assertAlmostEqual(record['balance'], -20.0)

        self.assertEqual(self.client.get('/ledger/99').status_code, 404)
        self.assertEqual(self.client.get('/ledger/abc').status_code, 400)

    def test_ledger_reads_are_consistent_while_trading(self):
        """Test /ledger never shows half of a trade while orders are matched."""
        def trade_pairs():
            for i in range(2000):
                self.engine.submit_sell(10.0, 1, i % 4)
                self.engine.submit_buy(10.0, 1, 4 + i % 4)

        writer = threading.Thread(target=trade_pairs)
        writer.start()
        try:
            for _ in range(300):
                data = self.client.get('/ledger').get_json()
                self.assertEqual(sum(r['holdings'] for r in data['records'].values()), 0)
                self.assertEqual(data['count'], len(data['records']))
        finally:
            writer.join()

        self.assertEqual(self.client.get('/ledger/7').get_json()['holdings'], 500)

    def test_bank_and_statistics(self):
        """Test bank and statistics endpoints."""
        self._submit('sell', 4, 10.0, 1)
        self._submit('buy', 4, 10.5, 2)

        self.assertAlmostEqual(self.client.get('/bank').get_json()['bank'], 2.0)

        stats = self.client.get('/statistics').get_json()
        self.assertEqual(stats['total_trades_executed'], 1)
        self.assertNotIn('performance', stats)

    def test_unknown_endpoint(self):
        """Test JSON error bodies for unknown routes and methods."""
        response = self.client.get('/nowhere')
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json()['error'], 'Endpoint not found')

        self.assertEqual(self.client.get('/orders').status_code, 405)


if __name__ == '__main__':
    unittest.main()
