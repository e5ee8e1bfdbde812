"""Built-in medical synonym table for keyword topic matching.

Each key maps to terms that name the same health area. The table is
read symmetrically: a user topic mentioning any term of a group matches
a content topic mentioning any other term of the same group.
"""

from typing import Final


MEDICAL_SYNONYMS: Final[dict[str, tuple[str, ...]]] = {
    "heart": ("cardiovascular", "cardiac", "heart disease", "cardiology"),
    "blood pressure": ("hypertension", "hypotension", "bp"),
    "diabetes": ("blood sugar", "glucose", "insulin", "diabetic"),
    "stomach": ("digestive", "gastric", "gut", "gastrointestinal", "digestion"),
    "skin": ("dermatology", "dermatitis", "rash", "eczema", "acne"),
    "mental health": ("anxiety", "depression", "stress", "mental wellness", "psychiatry"),
    "sleep": ("insomnia", "sleep disorder", "healthy sleep"),
    "headache": ("migraine", "head pain"),
    "lungs": ("respiratory", "breathing", "asthma", "pulmonary"),
    "kidney": ("renal", "nephrology"),
    "bones": ("orthopedic", "joint", "arthritis", "osteoporosis"),
    "child": ("pediatric", "children", "baby", "infant", "child health"),
    "weight": ("obesity", "weight management", "weight loss"),
    "nutrition": ("diet", "healthy eating", "nutrition tips"),
    "exercise": ("fitness", "physical activity", "workout"),
    "cold": ("flu", "influenza", "common cold"),
    "allergy": ("allergies", "allergic", "hay fever"),
    "pregnancy": ("prenatal", "maternal", "obstetrics"),
    "eye": ("vision", "ophthalmology", "eyesight"),
    "vaccine": ("vaccination", "immunization"),
}
