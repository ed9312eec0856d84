from typing import Dict

from httpx import AsyncClient


async def register(client: AsyncClient, email: str, password: str) -> Dict:
    response = await client.post("/api/v1/auth/register", json={"email": email, "password": password})
    assert response.status_code == 201, response.text
    return response.json()


def bearer(body: Dict) -> Dict[str, str]:
    return {"Authorization": f"Bearer {body['access_token']}"}
