"""
Esquemas de los registros de salud pública

Cada registro (cáncer, artritis, IPS) se describe con un EsquemaRegistro:
colección, campos declarados, campos numéricos, filtros de igualdad,
encabezados de Excel y filas de ejemplo para la plantilla descargable.
El motor genérico de registros se parametriza con estos esquemas.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class EsquemaRegistro:
    """
    Descripción de un tipo de registro

    Attributes:
        nombre: Nombre del módulo (URL y prefijo de permisos)
        coleccion: Colección del almacén
        titulo: Nombre legible del registro
        encabezados_excel: Pares (encabezado Excel, campo) en orden de columnas
        campos_numericos: Campos que se guardan como número
        filtrables: Campos con filtro de igualdad, en orden estable
        campo_prefijo: Campo con búsqueda por prefijo (sólo IPS)
        ttl_cache: Vigencia de la caché en segundos
        persistir_cache: Si la caché de "todos los registros" se refleja en disco
        campo_titulo: Campo usado para describir el registro en la bitácora
        filas_ejemplo: Filas de la plantilla Excel (por encabezado)
        nombre_hoja: Hoja del libro exportado
    """

    nombre: str
    coleccion: str
    titulo: str
    encabezados_excel: Tuple[Tuple[str, str], ...]
    campos_numericos: frozenset = frozenset()
    filtrables: Tuple[str, ...] = ()
    campo_prefijo: Optional[str] = None
    ttl_cache: int = 5 * 60
    persistir_cache: bool = False
    campo_titulo: str = "id"
    filas_ejemplo: Tuple[Dict[str, Any], ...] = field(default_factory=tuple)
    nombre_hoja: str = "Registros"

    @property
    def campos(self) -> List[str]:
        """Campos declarados en el orden de las columnas de Excel"""
        return [campo for _, campo in self.encabezados_excel]

    @property
    def campos_consultables(self) -> List[str]:
        """Claves de filtro aceptadas (igualdades más el prefijo)"""
        claves = list(self.filtrables)
        if self.campo_prefijo:
            claves.append(self.campo_prefijo)
        return claves

    def es_numerico(self, campo: str) -> bool:
        return campo in self.campos_numericos


# ============================================================================
# REGISTRO DE CÁNCER
# ============================================================================

_ENCABEZADOS_CANCER = (
    ("RADICADO", "radicado"),
    ("ID INTERNO", "idInterno"),
    ("NIT PRESTADOR", "nitPrestador"),
    ("RAZON SOCIAL", "razonSocial"),
    ("ESTADO", "estado"),
    ("NUMERO FACTURA", "numeroFactura"),
    ("ESTADO AUDITORIA", "estadoAuditoria"),
    ("CIUDAD PRESTADOR", "ciudadPrestador"),
    ("PERIODO", "periodo"),
    ("TIPO DOCUMENTO", "tipoDocumento"),
    ("NUMERO DOCUMENTO", "numeroDocumento"),
    ("NOMBRE_ESTABLECIMIENTO DEL PACIENTE", "nombreEstablecimiento"),
    ("EPC_CIUDAD DEL PACIENTE", "epcCiudad"),
    ("EPC_DEPARTAMENTO DEL PACIENTE", "epcDepartamento"),
    ("REGIONAL_NORMALIZADA DEL PACIENTE", "regionalNormalizada"),
    ("FECHA INGRESO", "fechaIngreso"),
    ("FECHA EGRESO", "fechaEgreso"),
    ("DIAS ESTANCIA", "diasEstancia"),
    ("TIPO SERVICIO", "tipoServicio"),
    ("CODIGO SERVICIO", "codigoServicio"),
    ("DESCRIPCION SERVICIO", "descripcionServicio"),
    ("AGRUPADOR DE SERVICIOS", "agrupadorServicios"),
    ("COD. DIAGNOSTICO", "codDiagnostico"),
    ("DESC. DIAGNOSTICO", "descDiagnostico"),
    ("dx", "dx"),
    ("CANTIDAD", "cantidad"),
    ("VALOR UNITARIO", "valorUnitario"),
    ("VALOR TOTAL", "valorTotal"),
    ("TIPO CONTRATO", "tipoContrato"),
    ("TUTELA-USUARIO", "tutelaUsuario"),
    ("CONTEO", "conteo"),
    ("TUTELA", "tutela"),
)

_EJEMPLOS_CANCER = (
    {
        "RADICADO": "1234567",
        "ID INTERNO": "001",
        "NIT PRESTADOR": "900123456",
        "RAZON SOCIAL": "HOSPITAL EJEMPLO",
        "ESTADO": "ACTIVO",
        "NUMERO FACTURA": "FAC-001",
        "ESTADO AUDITORIA": "AUDITADO",
        "CIUDAD PRESTADOR": "BOGOTÁ",
        "PERIODO": "2025-01",
        "TIPO DOCUMENTO": "CC",
        "NUMERO DOCUMENTO": "1234567890",
        "NOMBRE_ESTABLECIMIENTO DEL PACIENTE": "CLÍNICA EJEMPLO",
        "EPC_CIUDAD DEL PACIENTE": "MEDELLÍN",
        "EPC_DEPARTAMENTO DEL PACIENTE": "ANTIOQUIA",
        "REGIONAL_NORMALIZADA DEL PACIENTE": "REGIONAL NOROESTE",
        "FECHA INGRESO": "2025-01-15",
        "FECHA EGRESO": "2025-01-20",
        "DIAS ESTANCIA": 5,
        "TIPO SERVICIO": "HOSPITALIZACIÓN",
        "CODIGO SERVICIO": "SRV001",
        "DESCRIPCION SERVICIO": "CONSULTA ONCOLÓGICA",
        "AGRUPADOR DE SERVICIOS": "ONCOLOGÍA",
        "COD. DIAGNOSTICO": "C50",
        "DESC. DIAGNOSTICO": "TUMOR MALIGNO DE LA MAMA",
        "dx": "C50.9",
        "CANTIDAD": 1,
        "VALOR UNITARIO": 150000,
        "VALOR TOTAL": 150000,
        "TIPO CONTRATO": "EVENTO",
        "TUTELA-USUARIO": "NO",
        "CONTEO": 1,
        "TUTELA": "NO",
    },
    {
        "RADICADO": "1234568",
        "ID INTERNO": "002",
        "NIT PRESTADOR": "900654321",
        "RAZON SOCIAL": "CLÍNICA SALUD",
        "ESTADO": "ACTIVO",
        "NUMERO FACTURA": "FAC-002",
        "ESTADO AUDITORIA": "PENDIENTE",
        "CIUDAD PRESTADOR": "CALI",
        "PERIODO": "2025-02",
        "TIPO DOCUMENTO": "CC",
        "NUMERO DOCUMENTO": "9876543210",
        "NOMBRE_ESTABLECIMIENTO DEL PACIENTE": "CENTRO MÉDICO SUR",
        "EPC_CIUDAD DEL PACIENTE": "CALI",
        "EPC_DEPARTAMENTO DEL PACIENTE": "VALLE DEL CAUCA",
        "REGIONAL_NORMALIZADA DEL PACIENTE": "REGIONAL SUROCCIDENTE",
        "FECHA INGRESO": "2025-02-01",
        "FECHA EGRESO": "2025-02-03",
        "DIAS ESTANCIA": 2,
        "TIPO SERVICIO": "AMBULATORIO",
        "CODIGO SERVICIO": "SRV002",
        "DESCRIPCION SERVICIO": "QUIMIOTERAPIA",
        "AGRUPADOR DE SERVICIOS": "ONCOLOGÍA",
        "COD. DIAGNOSTICO": "C34",
        "DESC. DIAGNOSTICO": "TUMOR MALIGNO DEL BRONQUIO Y PULMÓN",
        "dx": "C34.1",
        "CANTIDAD": 3,
        "VALOR UNITARIO": 500000,
        "VALOR TOTAL": 1500000,
        "TIPO CONTRATO": "CÁPITA",
        "TUTELA-USUARIO": "SI",
        "CONTEO": 1,
        "TUTELA": "SI",
    },
)

CANCER = EsquemaRegistro(
    nombre="cancer",
    coleccion="cancerRecords",
    titulo="Registro de Cáncer",
    encabezados_excel=_ENCABEZADOS_CANCER,
    campos_numericos=frozenset(
        {"diasEstancia", "cantidad", "valorUnitario", "valorTotal", "conteo"}
    ),
    filtrables=(
        "codDiagnostico",
        "epcDepartamento",
        "tipoServicio",
        "tipoContrato",
        "estado",
        "periodo",
        "ciudadPrestador",
        "numeroDocumento",
    ),
    ttl_cache=5 * 60,
    campo_titulo="radicado",
    filas_ejemplo=_EJEMPLOS_CANCER,
    nombre_hoja="Registros Cáncer",
)


# ============================================================================
# REGISTRO DE ARTRITIS
# ============================================================================

# Enfermedades y actividades se guardan como texto: "1" si aplica, fechas como dd/mm/aaaa
_ENCABEZADOS_ARTRITIS = (
    ("TIPO_DOCUMENTO", "tipoDocumento"),
    ("NUMERO_DOCUMENTO", "numeroDocumento"),
    ("PRIMER_APELLIDO", "primerApellido"),
    ("SEGUNDO_APELLIDO", "segundoApellido"),
    ("PRIMER_NOMBRE", "primerNombre"),
    ("SEGUNDO_NOMBRE", "segundoNombre"),
    ("EDAD", "edad"),
    ("CURSO DE VIDA", "cursoDeVida"),
    ("SEXO", "sexo"),
    ("NOMBRE_ESTABLECIMIENTO", "nombreEstablecimiento"),
    ("EPC_CIUDAD", "epcCiudad"),
    ("EPC_DEPARTAMENTO", "epcDepartamento"),
    ("REGIONAL_NORMALIZADA", "regionalNormalizada"),
    ("DISCAPACIDAD", "discapacidad"),
    ("LGTBIQ+", "lgtbiq"),
    ("GRUPOS ETNICOS", "gruposEtnicos"),
    ("ESTADO", "estado"),
    ("NOVEDAD", "novedad"),
    ("Hipertensión (HTA)", "hipertensionHTA"),
    ("Diabetes Mellitus (DM)", "diabetesMellitusDM"),
    ("VIH", "vih"),
    ("SIFILIS", "sifilis"),
    ("VARICELA", "varicela"),
    ("Tuberculosis", "tuberculosis"),
    ("Hiperlipidemia", "hiperlipidemia"),
    ("Asma", "asma"),
    ("Enfermedad Renal Crónica (ERC)", "enfermedadRenalCronicaERC"),
    ("Desnutricion", "desnutricion"),
    ("Obesidad", "obesidad"),
    ("Epilepsia", "epilepsia"),
    ("Hipotiroidismo", "hipotiroidismo"),
    (
        "Enfermedad Pulmonar Obstructiva Crónica (EPOC)",
        "enfermedadPulmonarObstructivaCronicaEPOC",
    ),
    ("Artritis", "artritis"),
    ("Cáncer (CA)", "cancerCA"),
    ("Tipo de cancer", "tipoDeCancer"),
    ("Patologías Cardíacas", "patologiasCardiacas"),
    ("TRASTORNO/SALUD MENTAL", "trastornoSaludMental"),
    ("GESTANTES", "gestantes"),
    ("Mujeres con trastornos menstruales", "mujeresConTrastornosMenstruales"),
    ("Endometriosis", "endometriosis"),
    ("AMENORREA", "amenorrea"),
    ("Glaucoma", "glaucoma"),
    ("CONSUMO DE SPA", "consumoDeSPA"),
    ("ENFERMEDAD HUERFANA", "enfermedadHuerfana"),
    ("HIPERPLASIA DE PROSTATA", "hiperplasiaDeProstata"),
    ("HEMOFILIA", "hemofilia"),
    ("OTROS TRASTORNOS VISUALES", "otrosTrastornosVisuales"),
    ("NUMERO DE RIESGOS", "numeroDERiesgos"),
    ("VALORACION MEDICINA GENERAL/FAMILIAR", "valoracionMedicinaGeneralFamiliar"),
    ("CONSULTA JOVEN", "consultaJoven"),
    ("CONSULTA ADULTEZ", "consultaAdultez"),
    ("CONSULTA VEJEZ", "consultaVejez"),
    ("CITOLOGIA-TAMIZAJE CA DE CERVIX", "citologiaTamizajeCACervix"),
    ("RESULTADO CITOLOGIA", "resultadoCitologia"),
    ("PLANIFICACION FAMILIAR", "planificacionFamiliar"),
    ("METODO", "metodo"),
    ("CONSULTA DE MAMA", "consultaDeMama"),
    ("MAMOGRAFIA", "mamografia"),
    ("RESULTADO MAMOGRAFIA", "resultadoMamografia"),
    ("TAMIZAJE CA PROSTATA", "tamizajeCAProstata"),
    ("RESULTADO PROSTATA", "resultadoProstata"),
    ("TAMIZAJE CA DE COLON", "tamizajeCADeColon"),
    ("RESULTADO COLON", "resultadoColon"),
    ("CREATININA", "creatinina"),
    ("GLICEMIA", "glicemia"),
    ("HDL", "hdl"),
    ("COLESTEROL TOTAL", "colesterolTotal"),
    ("LDL", "ldl"),
    ("TRIGLICERIDOS", "trigliceridos"),
    ("PEDIATRIA", "pediatria"),
    ("MEDICINA INTERNA", "medicinaInterna"),
    ("EDUCACION", "educacion"),
    ("ODONTOLOGIA", "odontologia"),
    ("TOMA VIH", "tomaVIH"),
    ("TOMA SIFILIS", "tomaSifilis"),
    ("TOMA HEPATITIS B", "tomaHepatitisB"),
    ("PSICOLOGIA", "psicologia"),
    ("NUTRICION", "nutricion"),
    ("GINECOLOGIA", "ginecologia"),
    ("ORTOPEDIA", "ortopedia"),
    ("ENDOCRINOLOGIA", "endocrinologia"),
    ("OFTALMOLOGIA", "oftalmologia"),
    ("PSIQUIATRIA", "psiquiatria"),
    ("TERAPIA FISICA", "terapiaFisica"),
    ("INTERVENCIONES", "intervenciones"),
)

_EJEMPLOS_ARTRITIS = (
    {
        "TIPO_DOCUMENTO": "CC",
        "NUMERO_DOCUMENTO": "1010201010",
        "PRIMER_APELLIDO": "García",
        "SEGUNDO_APELLIDO": "López",
        "PRIMER_NOMBRE": "Juan",
        "SEGUNDO_NOMBRE": "Carlos",
        "EDAD": 45,
        "CURSO DE VIDA": "Adultez",
        "SEXO": "M",
        "NOMBRE_ESTABLECIMIENTO": "HOSPITAL UNIVERSITARIO",
        "EPC_CIUDAD": "Bogotá",
        "EPC_DEPARTAMENTO": "Cundinamarca",
        "REGIONAL_NORMALIZADA": "Región Central",
        "DISCAPACIDAD": "No",
        "LGTBIQ+": "No",
        "GRUPOS ETNICOS": "No aplica",
        "ESTADO": "Vivo",
        "NOVEDAD": "Nuevo caso",
        "Hipertensión (HTA)": "1",
        "Hiperlipidemia": "1",
        "Artritis": "1",
        "NUMERO DE RIESGOS": 2,
        "VALORACION MEDICINA GENERAL/FAMILIAR": "15/03/2025",
        "CONSULTA ADULTEZ": "22/05/2025",
        "METODO": "N/A",
        "CREATININA": "12/02/2025",
        "GLICEMIA": "12/02/2025",
        "HDL": "12/02/2025",
        "COLESTEROL TOTAL": "12/02/2025",
        "LDL": "12/02/2025",
        "TRIGLICERIDOS": "12/02/2025",
        "MEDICINA INTERNA": "5/06/2025",
        "EDUCACION": "22/05/2025",
        "NUTRICION": "8/07/2025",
        "ORTOPEDIA": "10/04/2025",
        "TERAPIA FISICA": "15/06/2025",
        "INTERVENCIONES": "Terapia física, Medicación antiinflamatoria",
    },
)

ARTRITIS = EsquemaRegistro(
    nombre="arthritis",
    coleccion="arthritisRecords",
    titulo="Registro de Artritis",
    encabezados_excel=_ENCABEZADOS_ARTRITIS,
    campos_numericos=frozenset({"edad"}),
    filtrables=("epcDepartamento", "estado", "numeroDocumento"),
    ttl_cache=30 * 60,
    persistir_cache=True,
    campo_titulo="numeroDocumento",
    filas_ejemplo=_EJEMPLOS_ARTRITIS,
    nombre_hoja="Registros Artritis",
)


# ============================================================================
# DIRECTORIO DE IPS
# ============================================================================

_ENCABEZADOS_IPS = (
    ("DEPARTAMENTO", "departamento"),
    ("MUNICIPIO", "municipio"),
    ("REGION", "region"),
    ("codigo_habilitacion", "codigoHabilitacion"),
    ("numero_sede", "numeroSede"),
    ("NOM IPS", "nomIps"),
    ("DIRECCION", "direccion"),
    ("TELEFONO", "telefono"),
    ("email", "email"),
    ("nits_nit", "nitsNit"),
    ("dv", "dv"),
    ("clase_persona", "clasePersona"),
    ("naju_codigo", "najuCodigo"),
    ("naju_nombre", "najuNombre"),
    ("clpr_codigo", "clprCodigo"),
    ("clpr_nombre", "clprNombre"),
    ("grse_codigo", "grseCodigo"),
    ("TIP SERVICIO", "tipServicio"),
    ("serv_codigo", "servCodigo"),
    ("NOM SERVICIO", "nomServicio"),
    ("COMPLEJIDAD", "complejidad"),
)

_EJEMPLOS_IPS = (
    {
        "DEPARTAMENTO": "ATLANTICO",
        "MUNICIPIO": "BARRANQUILLA",
        "REGION": "CARIBE",
        "codigo_habilitacion": "085001000001",
        "numero_sede": "1",
        "NOM IPS": "CLINICA EJEMPLO S.A.S.",
        "DIRECCION": "CRA 45 # 15-20",
        "TELEFONO": "6051234567",
        "email": "info@clinicaejemplo.com",
        "nits_nit": "900123456",
        "dv": "7",
        "clase_persona": "JURIDICA",
        "naju_codigo": "12",
        "naju_nombre": "SOCIEDAD POR ACCIONES SIMPLIFICADA",
        "clpr_codigo": "1",
        "clpr_nombre": "PRIVADO",
        "grse_codigo": "2",
        "TIP SERVICIO": "AMBULATORIO",
        "serv_codigo": "105",
        "NOM SERVICIO": "CONSULTA MEDICINA GENERAL",
        "COMPLEJIDAD": "BAJA",
    },
)

IPS = EsquemaRegistro(
    nombre="ips",
    coleccion="ipsRecords",
    titulo="Directorio de IPS",
    encabezados_excel=_ENCABEZADOS_IPS,
    filtrables=("departamento", "municipio", "tipServicio", "complejidad"),
    campo_prefijo="nomIps",
    ttl_cache=5 * 60,
    campo_titulo="nomIps",
    filas_ejemplo=_EJEMPLOS_IPS,
    nombre_hoja="IPS",
)


ESQUEMAS: Dict[str, EsquemaRegistro] = {
    esquema.nombre: esquema for esquema in (CANCER, ARTRITIS, IPS)
}
