"""Token, form and billing builders shared by the test modules."""

import datetime

import jwt

TOKEN_SECRET = "test-identity-token-secret-with-32-bytes"

VALID_CPF = "529.982.247-25"
OTHER_CPF = "111.444.777-35"
VALID_CNPJ = "11.222.333/0001-81"
VALID_PHONE = "(11) 98765-4321"


def make_token(username, *, secret=TOKEN_SECRET, expires_in=300, **claims):
    payload = {
        "sub": username,
        "exp": datetime.datetime.now(tz=datetime.UTC) + datetime.timedelta(seconds=expires_in),
        **claims,
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def auth_headers(user):
    return {"HTTP_AUTHORIZATION": f"Bearer {make_token(user.get_username())}"}


def registration_form(**overrides):
    form = {
        "fullName": "Maria da Silva",
        "cpf": VALID_CPF,
        "phone": VALID_PHONE,
        "email": "maria@example.com",
        "credentialName": "Maria",
        "occupation": "Professora",
        "employer": "Escola Municipal",
        "city": "Campinas",
        "howDidYouHearAboutUs": "instagram",
        "isPhoneWhatsapp": True,
        "useImage": False,
    }
    form.update(overrides)
    return form


def pf_billing(**overrides):
    details = {"fullName": "Maria da Silva", "email": "maria@example.com", "phone": VALID_PHONE}
    details.update(overrides)
    return details


def pj_billing(**overrides):
    details = {
        "orgName": "Prefeitura de Campinas",
        "orgCnpj": VALID_CNPJ,
        "orgPhone": "(19) 3333-4444",
        "orgAddress": "Av. Anchieta, 200",
        "orgCity": "Campinas",
        "orgState": "SP",
        "orgZip": "13015-904",
        "responsibleName": "João Souza",
        "responsiblePhone": "(19) 99876-5432",
        "responsibleEmail": "joao@example.com",
        "paymentByCommitment": True,
    }
    details.update(overrides)
    return details
