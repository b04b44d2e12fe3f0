# /cry_match/repo/catalog_repo.py

import random

import httpx

from domain.entity import CatalogEntity
from domain.errors import CatalogError

GET_POKEMON_LIST = """
query GetPokemonList($limit: Int!, $offset: Int!) {
  pokemon: pokemon(limit: $limit, offset: $offset, order_by: { id: asc }) {
    id
    name
    pokemonsprites {
      sprites
    }
    pokemoncries {
      cries
    }
  }
}
"""


class CatalogRepository:
    def __init__(self, config, client=None, rng=None):
        """
        Citește o pagină din catalog (GraphQL peste HTTP).
        :param config: Config cu catalog_url, catalog_limit, catalog_pool_size, http_timeout
        :param client: httpx.Client (opțional; implicit se creează unul propriu)
        :param rng: random.Random pentru offset-ul aleator (opțional)
        """
        self.config = config
        self._owns_client = client is None
        self._client = client if client is not None else httpx.Client(timeout=config.http_timeout)
        self._rng = rng or random.Random()

    def random_offset(self, limit):
        upper = max(0, self.config.catalog_pool_size - limit)
        return self._rng.randrange(upper) if upper > 0 else 0

    def fetch(self, limit=None, offset=None):
        """
        :param limit: numărul de intrări (implicit config.catalog_limit)
        :param offset: offset-ul paginii; None = offset aleator în [0, pool_size - limit)
        :return: lista de CatalogEntity
        :raises CatalogError: eroare de rețea, status HTTP sau eroare GraphQL
        """
        limit = self.config.catalog_limit if limit is None else limit
        offset = self.random_offset(limit) if offset is None else offset

        try:
            response = self._client.post(
                self.config.catalog_url,
                json={"query": GET_POKEMON_LIST, "variables": {"limit": limit, "offset": offset}},
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            raise CatalogError(f"Catalogul a răspuns cu status {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise CatalogError(f"Eroare la interogarea catalogului: {e}") from e
        except ValueError as e:
            raise CatalogError(f"Răspuns invalid de la catalog: {e}") from e

        if not isinstance(payload, dict):
            raise CatalogError(f"Răspuns neașteptat de la catalog: {type(payload).__name__}")
        errors = payload.get("errors")
        if errors:
            if not isinstance(errors, list):
                errors = [errors]
            messages = "; ".join(
                str(err.get("message", "?")) if isinstance(err, dict) else str(err) for err in errors)
            raise CatalogError(f"Eroare GraphQL: {messages}")

        data = payload.get("data") or {}
        records = data.get("pokemon") if isinstance(data, dict) else None
        if records is None:
            return []
        if not isinstance(records, list):
            raise CatalogError("Câmpul 'pokemon' din răspunsul catalogului nu este o listă.")
        return [self.parse_entity(record) for record in records]

    @staticmethod
    def parse_entity(record):
        """
        :raises CatalogError: înregistrarea nu este un obiect sau nu are id
        """
        if not isinstance(record, dict) or record.get("id") is None:
            raise CatalogError(f"Intrare invalidă în catalog: {record!r}")
        try:
            return CatalogRepository._build_entity(record)
        except (AttributeError, KeyError, TypeError) as e:
            raise CatalogError(f"Intrare invalidă în catalog ({record['id']}): {e}") from e

    @staticmethod
    def _build_entity(record):
        sprites = _first(record.get("pokemonsprites"), "sprites")
        cries = _first(record.get("pokemoncries"), "cries")
        sprite_url = (((sprites or {}).get("other") or {}).get("showdown") or {}).get("front_default")

        return CatalogEntity(
            id=record["id"],
            name=record.get("name", ""),
            sprite_url=sprite_url or None,
            cry_url=(cries or {}).get("latest") or None,
        )

    def close(self):
        if self._owns_client:
            self._client.close()


def _first(edges, field):
    if not edges:
        return None
    return (edges[0] or {}).get(field)
