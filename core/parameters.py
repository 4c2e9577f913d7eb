"""
Predefined public parameters for the supported security levels.

Level 0 is only meant for quick local runs, level 1 for integration testing,
level 2 offers 112 bits of security.
"""

import logging
from typing import Dict, Optional

from .arithmetic import random_prime
from .models import (DEFAULT_ALPHABET, EncryptionGroup, IdentificationGroup,
                     PrimeField, PublicParameters, SecurityParameters)

logger = logging.getLogger(__name__)

# Verified safe primes p = 2q + 1 where q is also prime
# 1024-bit safe prime from RFC 2409 (Oakley Group 2)
SAFE_PRIME_1024 = int("""
179769313486231590770839156793787453197860296048756011706444423684197180216158519368947833795864925541502180565485980503646440548199239100050792877003355816639229553136239076508735759914822574862575007425302077447712589550957937778424442426617334727629299387668709205606050270810842907692932019128194467627007
""".replace('\n', ''))

# 2048-bit safe prime from RFC 3526 (MODP Group 14)
SAFE_PRIME_2048 = int("""
323170060713110073003389139264238282488179412411402391128420097514007417066343
542226196894173635693471179017379097041917546058732091950288537589861856221532
121754125149017745202702357960782362488842461894775876411059286460994117232454
266225221932305409190376805242355191256797158701170010580558776510388618472802
579760549035697325615261670813393617995413364765591603683178967290731783845896
806396719009772021941686472258710314113364293195361934716365332097170774482279
885885653692086452966360772502689555059283627511211740969729980684105543595848
66583291642136218231078990999448652468262416972035911852507045361090559
""".replace('\n', ''))

# Squares are always quadratic residues, hence generators of G_q
GENERATOR_G = 4
GENERATOR_H = 9
GENERATOR_G_CIRC = 16

DEFAULT_N_MAX = 1678

SECURITY_LEVELS: Dict[int, SecurityParameters] = {
    # tau >= 32 keeps p' large enough for distinct x-coordinates of every candidate
    0: SecurityParameters(sigma=32, tau=32, upper_l=64, epsilon=0.99),
    1: SecurityParameters(sigma=80, tau=80, upper_l=160, epsilon=0.999),
    2: SecurityParameters(sigma=112, tau=112, upper_l=256, epsilon=0.999),
}

_GROUP_PRIMES = {0: SAFE_PRIME_1024, 1: SAFE_PRIME_1024, 2: SAFE_PRIME_2048}
# Byte length of return and finalization codes
CODE_LENGTH = 2


def create_encryption_group(p: int) -> EncryptionGroup:
    return EncryptionGroup(p=p, q=(p - 1) // 2, g=GENERATOR_G, h=GENERATOR_H)


def create_identification_group(p_circ: int) -> IdentificationGroup:
    return IdentificationGroup(p_circ=p_circ, q_circ=(p_circ - 1) // 2, g_circ=GENERATOR_G_CIRC)


def create_prime_field(security_parameters: SecurityParameters) -> PrimeField:
    """Fresh prime field with a modulus of at least 2 * tau bits"""
    logger.info("creating prime field")
    return PrimeField(random_prime(2 * security_parameters.tau))


def create_public_parameters(level: int, s: int, n_max: int = DEFAULT_N_MAX,
                             alphabet: str = DEFAULT_ALPHABET,
                             upper_l_r: int = CODE_LENGTH, upper_l_f: int = CODE_LENGTH,
                             prime_field: Optional[PrimeField] = None) -> PublicParameters:
    if level not in SECURITY_LEVELS:
        raise ValueError(f"Unknown security level {level}")
    logger.info(f"creating public parameters for security level {level}")

    security_parameters = SECURITY_LEVELS[level]
    encryption_group = create_encryption_group(_GROUP_PRIMES[level])
    identification_group = create_identification_group(_GROUP_PRIMES[level])
    if prime_field is None:
        prime_field = create_prime_field(security_parameters)

    return PublicParameters(
        security_parameters=security_parameters,
        encryption_group=encryption_group,
        identification_group=identification_group,
        prime_field=prime_field,
        q_circ_x=identification_group.q_circ,
        alphabet_x=alphabet,
        q_circ_y=identification_group.q_circ,
        alphabet_y=alphabet,
        alphabet_r=alphabet,
        upper_l_r=upper_l_r,
        alphabet_f=alphabet,
        upper_l_f=upper_l_f,
        s=s,
        n_max=n_max
    )
