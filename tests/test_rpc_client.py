import unittest
from unittest.mock import MagicMock, patch

import httpx

from plumise_agent.exceptions import RpcError
from plumise_agent.models import Challenge
from plumise_agent.rpc_client import RpcClient

NODE_URL = "http://localhost:8545/rpc"


def rpc_response(result=None, error=None, status_code=200, reason="OK"):
    response = MagicMock()
    response.status_code = status_code
    response.is_success = 200 <= status_code < 300
    response.reason_phrase = reason
    body = {"jsonrpc": "2.0", "id": 1}
    if error is not None:
        body["error"] = error
    else:
        body["result"] = result
    response.json.return_value = body
    return response


class TestRpcClient(unittest.TestCase):

    def setUp(self):
        patcher = patch("plumise_agent.rpc_client.httpx.Client")
        self.mock_client_cls = patcher.start()
        self.addCleanup(patcher.stop)
        self.mock_client = MagicMock()
        self.mock_client_cls.return_value = self.mock_client
        self.client = RpcClient(NODE_URL, timeout=5.0)

    def last_payload(self):
        args, kwargs = self.mock_client.post.call_args
        self.assertEqual(args[0], NODE_URL)
        return kwargs["json"]

    def test_envelope_and_incrementing_ids(self):
        self.mock_client.post.return_value = rpc_response(result="0x1")
        self.client.call("eth_chainId")
        first = self.last_payload()
        self.client.call("eth_blockNumber", [])
        second = self.last_payload()

        self.mock_client_cls.assert_called_once_with(timeout=5.0)
        self.assertEqual(first, {"jsonrpc": "2.0", "id": 1, "method": "eth_chainId", "params": []})
        self.assertEqual(second["id"], 2)

    def test_heartbeat(self):
        self.mock_client.post.return_value = rpc_response(result={"acknowledged": True, "nextExpected": 1700000060})

        ack = self.client.send_heartbeat("0xabc", "0xsig")

        self.assertEqual(self.last_payload()["method"], "agent_heartbeat")
        self.assertEqual(self.last_payload()["params"], ["0xabc", "0xsig"])
        self.assertTrue(ack.acknowledged)
        self.assertEqual(ack.next_expected, 1700000060)

    def test_register(self):
        self.mock_client.post.return_value = rpc_response(
            result={"success": True, "agentId": "agent-7", "message": "welcome"}
        )

        result = self.client.register("0xabc", "0xsig")

        self.assertEqual(self.last_payload()["method"], "agent_register")
        self.assertEqual(result.agent_id, "agent-7")
        self.assertEqual(result.message, "welcome")

    def test_fetch_challenge(self):
        self.mock_client.post.return_value = rpc_response(
            result={"id": "c1", "difficulty": 8, "data": "abc", "expiresAt": 0}
        )

        challenge = self.client.fetch_challenge("0xabc")

        self.assertEqual(self.last_payload()["method"], "agent_getChallenge")
        self.assertEqual(challenge, Challenge(id="c1", difficulty=8, data="abc", expires_at=0))

    def test_fetch_challenge_none_available(self):
        self.mock_client.post.return_value = rpc_response(result=None)
        self.assertIsNone(self.client.fetch_challenge("0xabc"))

        self.mock_client.post.return_value = rpc_response(result={"id": "", "difficulty": 8})
        self.assertIsNone(self.client.fetch_challenge("0xabc"))

    def test_submit_solution(self):
        self.mock_client.post.return_value = rpc_response(
            result={"accepted": True, "reward": "10", "message": "nice"}
        )

        result = self.client.submit_solution("0xabc", "c1", "00000005", "0xsig")

        self.assertEqual(self.last_payload()["method"], "agent_submitSolution")
        self.assertEqual(self.last_payload()["params"], ["0xabc", "c1", "00000005", "0xsig"])
        self.assertTrue(result.accepted)
        self.assertEqual(result.reward, "10")

    def test_status_and_stats(self):
        self.mock_client.post.return_value = rpc_response(
            result={"registered": True, "uptime": 3600, "lastHeartbeat": 1700000000,
                    "challengesSolved": 4, "pendingReward": "2.5"}
        )
        status = self.client.get_status("0xabc")
        self.assertEqual(status.address, "0xabc")
        self.assertEqual(status.challenges_solved, 4)
        self.assertEqual(status.to_dict()["pendingReward"], "2.5")

        self.mock_client.post.return_value = rpc_response(
            result={"totalAgents": 10, "activeAgents": 7, "currentBlockNumber": 1234}
        )
        stats = self.client.get_network_stats()
        self.assertEqual(stats.active_agents, 7)
        self.assertEqual(stats.current_block_number, 1234)

    def test_hex_quantities(self):
        self.mock_client.post.return_value = rpc_response(result="0x1b4")
        self.assertEqual(self.client.get_balance("0xabc"), 436)
        self.assertEqual(self.last_payload()["params"], ["0xabc", "latest"])

    def test_rpc_error_member(self):
        self.mock_client.post.return_value = rpc_response(error={"code": -32000, "message": "not registered"})

        with self.assertRaises(RpcError) as ctx:
            self.client.send_heartbeat("0xabc", "0xsig")

        self.assertEqual(str(ctx.exception), "RPC error [-32000]: not registered")
        self.assertEqual(ctx.exception.code, -32000)

    def test_http_error_status(self):
        self.mock_client.post.return_value = rpc_response(status_code=503, reason="Service Unavailable")

        with self.assertRaises(RpcError) as ctx:
            self.client.call("agent_heartbeat", [])

        self.assertEqual(str(ctx.exception), "RPC HTTP error: 503 Service Unavailable")

    def test_connection_error(self):
        self.mock_client.post.side_effect = httpx.ConnectError("refused")

        with self.assertRaises(RpcError) as ctx:
            self.client.call("agent_heartbeat", [])

        self.assertIn("connection failed", str(ctx.exception))

    def test_timeout(self):
        self.mock_client.post.side_effect = httpx.ReadTimeout("slow")

        with self.assertRaises(RpcError) as ctx:
            self.client.call("agent_heartbeat", [])

        self.assertIn("timeout", str(ctx.exception))

    def test_invalid_json(self):
        response = rpc_response()
        response.json.side_effect = ValueError("bad json")
        self.mock_client.post.return_value = response

        with self.assertRaises(RpcError):
            self.client.call("agent_heartbeat", [])

    def test_string_error_member(self):
        self.mock_client.post.return_value = rpc_response(error="node overloaded")

        with self.assertRaises(RpcError) as ctx:
            self.client.fetch_challenge("0xabc")

        self.assertEqual(str(ctx.exception), "RPC error: node overloaded")
        self.assertIsNone(ctx.exception.code)

    def test_non_object_body(self):
        response = rpc_response()
        response.json.return_value = ["not", "an", "envelope"]
        self.mock_client.post.return_value = response

        with self.assertRaises(RpcError):
            self.client.call("agent_heartbeat", [])

    def test_malformed_challenge(self):
        self.mock_client.post.return_value = rpc_response(result={"id": "c1", "difficulty": "high"})

        with self.assertRaises(RpcError) as ctx:
            self.client.fetch_challenge("0xabc")

        self.assertIn("agent_getChallenge", str(ctx.exception))

    def test_non_object_result(self):
        self.mock_client.post.return_value = rpc_response(result="c1")

        with self.assertRaises(RpcError):
            self.client.fetch_challenge("0xabc")
        with self.assertRaises(RpcError):
            self.client.submit_solution("0xabc", "c1", "00000005", "0xsig")

    def test_malformed_quantity(self):
        self.mock_client.post.return_value = rpc_response(result=None)

        with self.assertRaises(RpcError):
            self.client.get_balance("0xabc")

    def test_reward_and_claim(self):
        self.mock_client.post.return_value = rpc_response(
            result={"pending": "3.5", "claimed": "10", "total": "13.5"}
        )
        reward = self.client.get_reward("0xabc")
        self.assertEqual(self.last_payload()["method"], "agent_getReward")
        self.assertEqual(reward.pending, "3.5")
        self.assertEqual(reward.total, "13.5")

        self.mock_client.post.return_value = rpc_response(result={"txHash": "0xfeed", "amount": "3.5"})
        claim = self.client.claim_reward("0xabc", "0xsig")
        self.assertEqual(self.last_payload()["method"], "agent_claimReward")
        self.assertEqual(self.last_payload()["params"], ["0xabc", "0xsig"])
        self.assertEqual(claim.tx_hash, "0xfeed")
        self.assertEqual(claim.amount, "3.5")

    def test_context_manager_closes(self):
        with self.client as client:
            self.assertIs(client, self.client)
        self.mock_client.close.assert_called_once()


if __name__ == "__main__":
    unittest.main()
