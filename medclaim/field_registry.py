"""Single registry for claim-form field definitions.

Each field carries its ordered extraction rules (first match wins), its
importance weight for scoring and its display label/section for exports.
Used by the extractor, the scoring/validation engine and the CSV export.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum

logger = logging.getLogger(__name__)

DEFAULT_FIELD_WEIGHT = 0.5
FORM_TYPE = "korean_medical_insurance"

NOCASE = re.IGNORECASE


class FieldName(str, Enum):
    policyowner_name = "policyownerName"
    insured_name = "insuredName"
    occupation = "occupation"
    hkid_passport = "hkidPassport"
    date_of_birth = "dateOfBirth"
    hospital_name = "hospitalName"
    hospital_id = "hospitalId"
    hospital_address = "hospitalAddress"
    patient_name = "patientName"
    patient_id_number = "patientIdNumber"
    address = "address"
    phone = "phone"
    treatment_date = "treatmentDate"
    department = "department"
    doctor_name = "doctorName"
    diagnosis = "diagnosis"
    treatment = "treatment"
    prescription = "prescription"
    total_cost = "totalCost"
    patient_payment = "patientPayment"
    insurance_claim = "insuranceClaim"
    account_holder_name = "accountHolderName"
    currency = "currency"
    bank_name = "bankName"
    hkd_bank_account = "hkdBankAccount"
    usd_bank_account = "usdBankAccount"
    bank_number = "bankNumber"
    account_number = "accountNumber"
    insurance_number = "insuranceNumber"


class Section(str, Enum):
    personal = "Personal Info"
    hospital = "Hospital Info"
    medical = "Medical Info"
    financial = "Financial Info"
    banking = "Banking Info"
    insurance = "Insurance Info"


@dataclass(frozen=True)
class ExtractionRule:
    rule_id: str
    pattern: str
    flags: int = 0
    group: int = 1
    regex: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "regex", re.compile(self.pattern, self.flags))


@dataclass(frozen=True)
class FieldDef:
    name: FieldName
    label: str
    section: Section
    rules: tuple[ExtractionRule, ...]


def _field(name: FieldName, label: str, section: Section, *rules: tuple[str, int]) -> FieldDef:
    return FieldDef(
        name=name,
        label=label,
        section=section,
        rules=tuple(
            ExtractionRule(rule_id=f"{name.value}#{index}", pattern=pattern, flags=flags)
            for index, (pattern, flags) in enumerate(rules)
        ),
    )


# Rules run most label-specific first, most format-generic last.
FIELD_REGISTRY: tuple[FieldDef, ...] = (
    # Policyholder and insured
    _field(
        FieldName.policyowner_name, "Name of Policyowner", Section.personal,
        (r"(?:보험계약자\s*성명|Name of Policyowner|Contract Holder)[\s:：]*([가-힣A-Za-z\s]+)", NOCASE),
        (r"(?:계약자|Policyowner)[\s:：]*([가-힣A-Za-z\s]+)", NOCASE),
    ),
    _field(
        FieldName.insured_name, "Name of Insured", Section.personal,
        (r"(?:피보험자\s*성명|Name of Insured|Insured Person)[\s:：]*([가-힣A-Za-z\s]+)", NOCASE),
        (r"(?:피보험자|Insured)[\s:：]*([가-힣A-Za-z\s]+)", NOCASE),
    ),
    _field(
        FieldName.occupation, "Occupation", Section.personal,
        (r"(?:직업|Occupation|Job)[\s:：]*([가-힣A-Za-z\s]+)", NOCASE),
        (r"(?:직종|업무|Work)[\s:：]*([가-힣A-Za-z\s]+)", NOCASE),
    ),
    _field(
        FieldName.hkid_passport, "HKID/Passport", Section.personal,
        (r"(?:HKID|Passport|신분증번호|여권번호|ID Number)[\s:：]*([A-Za-z0-9()\s-]+)", NOCASE),
        (r"(?:신분증|여권|ID)[\s:：]*([A-Za-z0-9()\s-]+)", NOCASE),
        (r"([A-Z]{1,2}[0-9]{6,8}\([0-9A-Z]\))", 0),
    ),
    _field(
        FieldName.date_of_birth, "Date of Birth", Section.personal,
        (r"(?:생년월일|Date of Birth|Birth Date|DOB)[\s:：]*([0-9\s\-/.년월일]+)", NOCASE),
        (r"([0-9]{1,2}[/\-.][0-9]{1,2}[/\-.][0-9]{4})", 0),
        (r"([0-9]{4}[/\-.][0-9]{1,2}[/\-.][0-9]{1,2})", 0),
        (r"([0-9]{1,2}[/\-.][0-9]{1,2}[/\-.][0-9]{1,2})", 0),
    ),
    # Hospital
    _field(
        FieldName.hospital_name, "Hospital Name", Section.hospital,
        (r"(?:병원명|의료기관명|HOSPITAL NAME|Hospital)[\s:：]+([^\n\r]+)", NOCASE),
        # Word runs before a suffix are bounded so the search stays linear in text length.
        (r"(\b(?:\w+\s+){0,5}\w*?(?:병원|의원|클리닉|센터|Hospital|Clinic|Center|Medical))", NOCASE),
        (r"([가-힣]{1,20}(?:대학교|종합|병원|의원|클리닉))", NOCASE),
        (r"(?:Hospital|Medical|Clinic|Healthcare)[\s:：]*([A-Za-z\s]+)", NOCASE),
    ),
    _field(
        FieldName.hospital_id, "Hospital ID", Section.hospital,
        (r"(?:요양기관번호|기관번호|HOSPITAL ID)[\s:：]+([0-9]+)", NOCASE),
        (r"([0-9]{8,})", 0),
        (r"(?:Branch code|Location|ID)[\s:：]*([0-9A-Za-z]+)", NOCASE),
    ),
    _field(
        FieldName.hospital_address, "Hospital Address", Section.hospital,
        (r"(?:병원\s*주소|의료기관\s*주소|Hospital Address)[\s:：]*([^\n\r]+)", NOCASE),
        (r"(?:주소|Address)[\s:：]*([가-힣A-Za-z0-9\s,.-]+)", NOCASE),
    ),
    # Patient
    _field(
        FieldName.patient_name, "Patient Name", Section.personal,
        (r"(?:환자명|환자성명|성\s*명|이\s*름|Patient|PATIENT NAME)[\s:：]*([가-힣A-Za-z\s]{2,})", NOCASE),
        (r"성명[\s:：]*([가-힣A-Za-z\s]+)", NOCASE),
        (r"(?:Patient Name|Name|Claimant)[\s:：]*([A-Za-z\s]+)", NOCASE),
        (r"(?:benefit|claim|patient)[\s:：]*([A-Za-z\s]+)", NOCASE),
    ),
    _field(
        FieldName.patient_id_number, "Patient ID Number", Section.personal,
        (r"(?:주민등록번호|주민번호|ID NUMBER|등록번호)[\s:：]*([0-9*-]{13,})", NOCASE),
        (r"([0-9]{6}[-*][0-9*]{7})", 0),
        (r"(?:Policy|Member|ID|Certificate)[\s:：]*([A-Za-z0-9-]+)", NOCASE),
    ),
    # Contact
    _field(
        FieldName.address, "Address", Section.personal,
        (r"(?:주소|거주지|ADDRESS|Address)[\s:：]+([^\n\r]+)", NOCASE),
        (r"((?:서울|부산|대구|인천|광주|대전|울산|경기|강원|충북|충남|전북|전남|경북|경남|제주)[^\n\r]*)", NOCASE),
        (r"(?:Address|Location)[\s:：]*([A-Za-z0-9\s,.-]+)", NOCASE),
    ),
    _field(
        FieldName.phone, "Phone Number", Section.personal,
        (r"(?:전화번호|연락처|휴대폰|PHONE|Contact)[\s:：]*([0-9-]{10,})", NOCASE),
        (r"([0-9]{2,3}[-\s]?[0-9]{3,4}[-\s]?[0-9]{4})", 0),
        (r"(?:Phone|Tel|Contact)[\s:：]*([0-9\s\-+()]+)", NOCASE),
    ),
    # Medical
    _field(
        FieldName.treatment_date, "Treatment Date", Section.medical,
        (r"(?:진료일자?|내원일자?|수진일자?|방문일자?|TREATMENT DATE|Visit Date)[\s:：]*([0-9.\-/년월일\s]{8,})", NOCASE),
        (r"(20[0-9]{2}[.\-/\s]*[0-9]{1,2}[.\-/\s]*[0-9]{1,2})", 0),
        (r"([0-9]{4}년[0-9]{1,2}월[0-9]{1,2}일)", 0),
        (r"(?:Date|Treatment|Visit|Admission)[\s:：]*([0-9\s\-/.]+)", NOCASE),
    ),
    _field(
        FieldName.department, "Medical Department", Section.medical,
        (r"(?:진료과목?|진료과|과목|DEPARTMENT|Department)[\s:：]*([^\n\r]+)", NOCASE),
        (r"(정형외과|내과|외과|소아과|산부인과|이비인후과|피부과|안과|치과|신경과|정신과|가정의학과|응급의학과)", NOCASE),
        (r"(?:Department|Ward|Unit|Specialty)[\s:：]*([A-Za-z\s]+)", NOCASE),
    ),
    _field(
        FieldName.doctor_name, "Doctor Name", Section.hospital,
        (r"(?:의사명|담당의|주치의|의료진|DOCTOR|Doctor|의사\s*성명)[\s:：]*([가-힣A-Za-z\s.]{2,})", NOCASE),
        (r"(?:Dr.|Doctor|의사)\s*([가-힣A-Za-z\s.]+)", NOCASE),
        (r"(?:Doctor's Name|Physician)[\s:：]*([A-Za-z\s.]+)", NOCASE),
    ),
    _field(
        FieldName.diagnosis, "Diagnosis", Section.medical,
        (r"(?:상병명|진단명|질병명|병명|DIAGNOSIS|Diagnosis)[\s:：]*([^\n\r]+)", NOCASE),
        (r"(?:진단|병명)[\s:：]*([^\n\r]+)", NOCASE),
        (r"(?:Diagnosis|Condition|Disease|Illness)[\s:：]*([A-Za-z\s]+)", NOCASE),
    ),
    _field(
        FieldName.treatment, "Treatment", Section.medical,
        (r"(?:치료내용|처치내용|시술내용|TREATMENT|Treatment)[\s:：]*([^\n\r]+)", NOCASE),
        (r"(?:치료|처치|시술)[\s:：]*([^\n\r]+)", NOCASE),
        (r"(?:Treatment|Procedure|Surgery|Therapy)[\s:：]*([A-Za-z\s]+)", NOCASE),
    ),
    _field(
        FieldName.prescription, "Prescription", Section.medical,
        (r"(?:처방내용|처방전|약물|PRESCRIPTION|Prescription)[\s:：]*([^\n\r]+)", NOCASE),
        (r"(?:처방|투약)[\s:：]*([^\n\r]+)", NOCASE),
        (r"(?:Prescription|Medication|Medicine|Drug)[\s:：]*([A-Za-z\s]+)", NOCASE),
    ),
    # Financial
    _field(
        FieldName.total_cost, "Total Cost", Section.financial,
        (r"(?:진료비\s*총액|총\s*진료비|진료비\s*합계|의료비\s*총액|TOTAL COST|Medical Fee)[\s:：]*([0-9,]+)(?:\s*원|KRW)?", NOCASE),
        (r"총액[\s:：]*([0-9,]+)", NOCASE),
        (r"([0-9,]+)\s*원(?:\s*총액)?", 0),
        (r"(?:Total|Amount|Cost|Fee|Charge)[\s:：]*\$?([0-9,.]+)", NOCASE),
    ),
    _field(
        FieldName.patient_payment, "Patient Payment", Section.financial,
        (r"(?:본인부담금|환자부담금?|개인부담|PATIENT PAYMENT|Co-payment)[\s:：]*([0-9,]+)(?:\s*원|KRW)?", NOCASE),
        (r"본인부담[\s:：]*([0-9,]+)", NOCASE),
        (r"부담금[\s:：]*([0-9,]+)", NOCASE),
        (r"(?:Deductible|Copay|Patient Pay|Out of Pocket)[\s:：]*\$?([0-9,.]+)", NOCASE),
    ),
    _field(
        FieldName.insurance_claim, "Insurance Claim", Section.financial,
        (r"(?:보험청구액?|급여청구|보험급여|INSURANCE CLAIM|Insurance Amount)[\s:：]*([0-9,]+)(?:\s*원|KRW)?", NOCASE),
        (r"(?:보험|급여)[\s:：]*([0-9,]+)", NOCASE),
        (r"청구[\s:：]*([0-9,]+)", NOCASE),
        (r"(?:Claim|Coverage|Benefit|Reimbursement)[\s:：]*\$?([0-9,.]+)", NOCASE),
    ),
    # Banking
    _field(
        FieldName.account_holder_name, "Name of Account Holder", Section.banking,
        (r"(?:예금주\s*성명|계좌명의인|Name of Account Holder|Account Name)[\s:：]*([가-힣A-Za-z\s]+)", NOCASE),
        (r"(?:예금주|계좌주|Account Holder)[\s:：]*([가-힣A-Za-z\s]+)", NOCASE),
    ),
    _field(
        FieldName.currency, "Currency", Section.banking,
        (r"(?:통화|Currency)[\s:：]*([A-Z]{3}|원|달러|엔|HKD|USD|KRW|JPY)", NOCASE),
        (r"(HKD|USD|KRW|JPY|EUR|GBP)", 0),
    ),
    _field(
        FieldName.bank_name, "Bank Name", Section.banking,
        (r"(?:은행명|Bank Name|은행)[\s:：]*([가-힣A-Za-z\s]+(?:은행|Bank))", NOCASE),
        (r"(?:Bank|은행)[\s:：]*([가-힣A-Za-z\s]+)", NOCASE),
    ),
    _field(
        FieldName.hkd_bank_account, "HKD Bank Account", Section.banking,
        (r"(?:HKD\s*계좌번호|HKD Account|홍콩달러\s*계좌)[\s:：]*([0-9-]+)", NOCASE),
        (r"HKD[\s:：]*([0-9-]+)", NOCASE),
    ),
    _field(
        FieldName.usd_bank_account, "USD Bank Account", Section.banking,
        (r"(?:USD\s*계좌번호|USD Account|달러\s*계좌)[\s:：]*([0-9-]+)", NOCASE),
        (r"USD[\s:：]*([0-9-]+)", NOCASE),
    ),
    _field(
        FieldName.bank_number, "Bank Number", Section.banking,
        (r"(?:은행번호|Bank No|Bank Code|SWIFT|BIC)[\s:：]*([A-Za-z0-9]+)", NOCASE),
        (r"(?:Bank No|은행코드)[\s:：]*([0-9]+)", NOCASE),
    ),
    _field(
        FieldName.account_number, "Account Number", Section.banking,
        (r"(?:계좌번호|Account Number|Account No)[\s:：]*([0-9-]+)", NOCASE),
        (r"(?:계좌|Account)[\s:：]*([0-9-]+)", NOCASE),
    ),
    _field(
        FieldName.insurance_number, "Insurance Number", Section.insurance,
        (r"(?:보험증번호|가입자번호|피보험자번호|INSURANCE NUMBER)[\s:：]*([A-Za-z0-9-]+)", NOCASE),
        (r"([A-Za-z0-9]{10,})", 0),
        (r"(?:Policy|Certificate|Member|Group)[\s:：]*([A-Za-z0-9-]+)", NOCASE),
    ),
)

# Kept apart from the rule table so either can change without the other.
FIELD_WEIGHTS: dict[str, float] = {
    # Personal
    "policyownerName": 1.0,
    "insuredName": 1.0,
    "patientName": 1.0,
    "occupation": 0.8,
    "hkidPassport": 0.9,
    "dateOfBirth": 0.8,
    "patientIdNumber": 0.9,
    "address": 0.7,
    "phone": 0.7,
    # Hospital
    "hospitalName": 1.0,
    "hospitalId": 0.6,
    "hospitalAddress": 0.7,
    "doctorName": 0.8,
    # Medical
    "treatmentDate": 0.9,
    "department": 0.8,
    "diagnosis": 0.9,
    "treatment": 0.7,
    "prescription": 0.5,
    # Financial
    "totalCost": 1.0,
    "patientPayment": 0.8,
    "insuranceClaim": 0.9,
    # Banking
    "accountHolderName": 0.9,
    "currency": 0.8,
    "bankName": 0.8,
    "hkdBankAccount": 0.7,
    "usdBankAccount": 0.7,
    "bankNumber": 0.6,
    "accountNumber": 0.8,
    "insuranceNumber": 0.8,
}

# Order matters: longer terms that contain shorter ones come first.
DEPARTMENT_TERMS: dict[str, str] = {
    "정형외과": "Orthopedics",
    "내과": "Internal Medicine",
    "외과": "Surgery",
    "소아과": "Pediatrics",
    "산부인과": "Obstetrics and Gynecology",
    "이비인후과": "ENT",
    "피부과": "Dermatology",
    "안과": "Ophthalmology",
    "치과": "Dentistry",
    "신경과": "Neurology",
    "정신과": "Psychiatry",
    "가정의학과": "Family Medicine",
    "응급의학과": "Emergency Medicine",
}

REQUIRED_FIELDS: tuple[FieldName, ...] = (FieldName.patient_name, FieldName.hospital_name)
IMPORTANT_FIELDS: tuple[FieldName, ...] = (
    FieldName.treatment_date,
    FieldName.department,
    FieldName.total_cost,
)
OPTIONAL_FIELDS: tuple[FieldName, ...] = (
    FieldName.phone,
    FieldName.address,
    FieldName.diagnosis,
    FieldName.treatment,
    FieldName.prescription,
)

_BY_NAME: dict[str, FieldDef] = {fd.name.value: fd for fd in FIELD_REGISTRY}


def field_names() -> list[FieldName]:
    return [fd.name for fd in FIELD_REGISTRY]


def get_field(name: FieldName | str) -> FieldDef | None:
    key = name.value if isinstance(name, FieldName) else name
    return _BY_NAME.get(key)


def field_weight(name: FieldName | str) -> float:
    key = name.value if isinstance(name, FieldName) else name
    weight = FIELD_WEIGHTS.get(key)
    if weight is None:
        logger.warning("No weight registered for field %r, using default %.1f", key, DEFAULT_FIELD_WEIGHT)
        return DEFAULT_FIELD_WEIGHT
    return weight


def total_weight() -> float:
    return sum(field_weight(fd.name) for fd in FIELD_REGISTRY)
