# /cry_match/domain/similarity.py

import math


class SimilarityScorer:
    """
    Combină două FeatureSet-uri într-un scor de similaritate între 0 și 100.

    Pentru fiecare descriptor se calculează diferența absolută d și similaritatea
    max(0, 100 - d * k). Similaritatea totală este media ponderată a celor patru termeni.

    Peste media ponderată se aplică intenționat un bonus de generozitate: +10 pentru
    un rezultat >= 80 și +5 pentru un rezultat >= 70, plafonat la 100. Bonusul este o
    alegere de UX (imitațiile bune trebuie să se simtă răsplătite), nu face parte din
    măsurătoare; apply_boost=False dezactivează bonusul.
    """

    SCALE = {
        "rms": 50.0,
        "spectral_centroid": 1.0 / 200.0,
        "zcr": 30.0,
        "energy": 40.0,
    }
    WEIGHTS = {
        "rms": 0.3,
        "spectral_centroid": 0.2,
        "zcr": 0.2,
        "energy": 0.3,
    }
    BOOSTS = ((80.0, 10.0), (70.0, 5.0))

    def __init__(self, scale=None, weights=None, apply_boost=True):
        self.scale = dict(self.SCALE if scale is None else scale)
        self.weights = dict(self.WEIGHTS if weights is None else weights)
        self.apply_boost = apply_boost

        if set(self.weights) != set(self.scale):
            raise ValueError("Ponderile și factorii de scală trebuie să acopere aceiași descriptori.")
        if any(k < 0 for k in self.scale.values()):
            raise ValueError("Factorii de scală trebuie să fie nenegativi.")
        if not math.isclose(sum(self.weights.values()), 1.0, abs_tol=1e-9):
            raise ValueError(f"Ponderile trebuie să însumeze 1.0, nu {sum(self.weights.values())}")

    def term_similarity(self, name, difference):
        """
        Similaritatea unui singur descriptor pentru o diferență absolută dată.
        Monoton descrescătoare în diferență, cu podea la 0.
        """
        if not math.isfinite(difference):
            return 0.0
        return max(0.0, 100.0 - abs(difference) * self.scale[name])

    def term_similarities(self, reference, attempt):
        return {
            name: self.term_similarity(name, getattr(reference, name) - getattr(attempt, name))
            for name in self.weights
        }

    def score(self, reference, attempt):
        """
        :param reference: FeatureSet-ul clipului de referință
        :param attempt: FeatureSet-ul înregistrării utilizatorului
        :return: scorul în [0, 100], rotunjit la două zecimale
        """
        terms = self.term_similarities(reference, attempt)
        overall = sum(terms[name] * weight for name, weight in self.weights.items())

        if self.apply_boost:
            overall = self._boost(overall)

        overall = min(100.0, max(0.0, overall))
        return round(overall, 2)

    def _boost(self, overall):
        for threshold, bonus in self.BOOSTS:
            if overall >= threshold:
                return min(100.0, overall + bonus)
        return overall
