# /cry_match/domain/entity.py


class CatalogEntity:
    def __init__(self, id, name, sprite_url=None, cry_url=None):
        """
        O intrare din catalog, așa cum o vede motorul de imitație.
        :param id: identificator întreg, stabil
        :param name: numele afișat
        :param sprite_url: URL-ul imaginii (poate lipsi)
        :param cry_url: URL-ul clipului de referință (poate lipsi)
        """
        self.id = id
        self.name = name
        self.sprite_url = sprite_url
        self.cry_url = cry_url

    @property
    def has_cry(self):
        return bool(self.cry_url)

    def __eq__(self, other):
        if not isinstance(other, CatalogEntity):
            return NotImplemented
        return (self.id, self.name, self.sprite_url, self.cry_url) == \
            (other.id, other.name, other.sprite_url, other.cry_url)

    def __hash__(self):
        return hash(self.id)

    def __repr__(self):
        return f"CatalogEntity(id={self.id}, name={self.name!r})"
