"""
Synthetic visit tables in the OASIS longitudinal layout for tests.
"""
import numpy as np
import pandas as pd

TRUE_INTERCEPT = 28.0
TRUE_SLOPES = {"Age": -0.05, "EDUC": 0.15, "SES": -0.3, "eTIV": 0.001, "nWBV": 5.0, "male": -0.4}
SES_EFFECTS = {1.0: 0.8, 2.0: 0.4, 3.0: 0.0, 4.0: -0.4, 5.0: -0.8}


def make_visits(n_subjects: int = 40, visits_per_subject: int = 3, seed: int = 0,
                with_missing: bool = True) -> pd.DataFrame:
    """Build a visit table with a known linear relation between the score and covariates."""
    rng = np.random.default_rng(seed)
    rows = []
    for s in range(n_subjects):
        gender = "M" if s % 2 else "F"
        educ = float(rng.integers(8, 20))
        ses = float(rng.integers(1, 6))
        etiv = float(rng.normal(1500, 150))
        base_age = float(rng.integers(60, 90))
        for v in range(visits_per_subject):
            age = base_age + 1.5 * v
            nwbv = float(rng.normal(0.73, 0.03))
            score = (
                TRUE_INTERCEPT
                + TRUE_SLOPES["Age"] * age
                + TRUE_SLOPES["EDUC"] * educ
                + TRUE_SLOPES["SES"] * ses
                + TRUE_SLOPES["eTIV"] * etiv
                + TRUE_SLOPES["nWBV"] * nwbv
                + TRUE_SLOPES["male"] * (gender == "M")
                + rng.normal(0, 1.0)
            )
            rows.append({
                "Subject ID": f"OAS2_{s:04d}",
                "Visit": v + 1,
                "M/F": gender,
                "Age": age,
                "EDUC": educ,
                "SES": ses,
                "MMSE": round(score, 1),
                "eTIV": etiv,
                "nWBV": nwbv,
                "CDR": 0.5,
            })
    data = pd.DataFrame(rows)

    if with_missing:
        data.loc[[1, 7], "SES"] = np.nan
        data.loc[[4], "MMSE"] = np.nan
    return data


def write_visits_csv(path, **kwargs) -> pd.DataFrame:
    """Write a synthetic visit table to CSV and return it."""
    data = make_visits(**kwargs)
    data.to_csv(path, index=False)
    return data
