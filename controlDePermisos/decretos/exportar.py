"""
Exportación de decretos a planilla Excel (openpyxl) y a PDF (ReportLab).
"""
import re

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Alignment, Border, Side
from openpyxl.utils import get_column_letter

from reportlab.pdfgen import canvas
from reportlab.lib.pagesizes import A4

from .formato import (
    a_nombre_propio,
    decimal_con_coma,
    fecha_excel,
    fecha_larga,
    fecha_numerica,
    fecha_simple,
)
from .registros import NOMBRES_TIPO

COLUMNAS_TABLA = [
    "#", "Decreto", "Materia", "Acto", "Funcionario", "RUT", "Periodo",
    "Cantidad de días", "Fecha de inicio", "Tipo de Jornada",
    "Días a su haber", "Fecha", "Saldo final", "R.A", "Emite",
]

ANCHOS_COLUMNA = [6, 10, 18, 12, 36, 14, 9, 10, 22, 20, 10, 22, 10, 8, 8]

CONTENT_TYPE_EXCEL = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'


# ============================================================
#   EXCEL
# ============================================================

def libro_decretos(registros, titulo="Decretos"):
    """Arma el libro Excel con una fila por decreto, en el orden recibido."""
    wb = Workbook()
    ws = wb.active
    ws.title = titulo[:31]

    # Estilos
    header_fill = PatternFill(start_color="1E293B", end_color="1E293B", fill_type="solid")
    header_font = Font(bold=True, color="FFFFFF", size=11)
    pa_fill = PatternFill(start_color="E0E7FF", end_color="E0E7FF", fill_type="solid")
    fl_fill = PatternFill(start_color="FEF3C7", end_color="FEF3C7", fill_type="solid")
    negativo_font = Font(bold=True, color="DC2626")
    center_align = Alignment(horizontal="center", vertical="center")
    left_align = Alignment(horizontal="left", vertical="center")
    thin_border = Border(
        left=Side(style='thin', color='CBD5E1'),
        right=Side(style='thin', color='CBD5E1'),
        top=Side(style='thin', color='CBD5E1'),
        bottom=Side(style='thin', color='CBD5E1')
    )

    # FILA 1: encabezados
    for col, nombre in enumerate(COLUMNAS_TABLA, start=1):
        cell = ws.cell(1, col, nombre)
        cell.fill = header_fill
        cell.font = header_font
        cell.alignment = center_align
        cell.border = thin_border
    ws.freeze_panes = 'A2'

    # FILAS de datos
    for fila, r in enumerate(registros, start=2):
        valores = [
            fila - 1,
            r.solicitud_type,
            r.materia,
            r.acto,
            r.funcionario,
            r.rut,
            r.periodo,
            float(r.cantidad_dias),
            fecha_excel(r.fecha_inicio),
            r.tipo_jornada,
            float(r.dias_haber),
            fecha_excel(r.fecha_decreto),
            float(r.saldo),
            r.ra,
            r.emite,
        ]
        for col, valor in enumerate(valores, start=1):
            cell = ws.cell(fila, col, valor)
            cell.border = thin_border
            cell.alignment = left_align if col in (3, 5, 10) else center_align
        ws.cell(fila, 2).fill = pa_fill if r.solicitud_type == 'PA' else fl_fill
        if r.saldo < 0:
            ws.cell(fila, 13).font = negativo_font

    for col, ancho in enumerate(ANCHOS_COLUMNA, start=1):
        ws.column_dimensions[get_column_letter(col)].width = ancho

    return wb


# ============================================================
#   PDF
# ============================================================

def nombre_archivo_decreto(registro):
    """Ej: 'SGDP-PA N° 013-2026 - MARÍA SOLEDAD JARRIN ROJAS'"""
    nombre = registro.funcionario.upper().strip()
    acto = registro.acto.strip().replace('/', '-')
    base = f"SGDP-{registro.solicitud_type} N° {acto} - {nombre}"
    return re.sub(r'[\\:*?"<>|]', '', base)


def campos_documento(registro):
    """
    Valores con que se completa la plantilla del decreto. Las claves con
    guion bajo corresponden a etiquetas con espacios («Cantidad de días»).
    """
    return {
        "fileName": nombre_archivo_decreto(registro),
        "Decreto": registro.acto.strip(),
        "FUNCIONARIO": registro.funcionario.upper().strip(),
        "Funcionario": a_nombre_propio(registro.funcionario),
        "solicitudType": registro.solicitud_type,
        "RUT": registro.rut.strip(),
        "Fecha": fecha_simple(registro.fecha_decreto),
        "Cantidad_de_días": decimal_con_coma(registro.cantidad_dias, 1).replace(',0', ''),
        "Fecha_de_inicio": fecha_larga(registro.fecha_inicio),
        "Tipo_de_Jornada": registro.tipo_jornada.replace('(', '').replace(')', '').strip(),
        "Días_a_su_haber": decimal_con_coma(registro.dias_haber),
        "Saldo_final": decimal_con_coma(registro.saldo),
        "RA": registro.ra,
        "Emite": registro.emite,
    }


def escribir_pdf_decreto(destino, registro):
    """Dibuja el decreto en 'destino' (HttpResponse o cualquier archivo binario)."""
    campos = campos_documento(registro)

    pdf = canvas.Canvas(destino, pagesize=A4)
    pdf.setTitle(campos["fileName"])
    width, height = A4
    top_y = height - 60
    left_margin = 60

    # --- TÍTULO ---
    pdf.setFont("Helvetica-Bold", 15)
    titulo = f"{registro.materia.upper()} N° {campos['Decreto']}"
    pdf.drawString((width - pdf.stringWidth(titulo, "Helvetica-Bold", 15)) / 2, top_y, titulo)

    pdf.setFont("Helvetica", 11)
    subtitulo = NOMBRES_TIPO.get(registro.solicitud_type, registro.solicitud_type).upper()
    pdf.drawString((width - pdf.stringWidth(subtitulo, "Helvetica", 11)) / 2, top_y - 20, subtitulo)

    pdf.setLineWidth(1)
    pdf.line(50, top_y - 32, width - 50, top_y - 32)

    # --- CAMPOS ---
    filas = [
        ("FECHA:", campos["Fecha"]),
        ("FUNCIONARIO:", campos["FUNCIONARIO"]),
        ("RUT:", campos["RUT"]),
        ("PERIODO:", registro.periodo),
        ("CANTIDAD DE DÍAS:", campos["Cantidad_de_días"]),
        ("FECHA DE INICIO:", campos["Fecha_de_inicio"]),
        ("TIPO DE JORNADA:", campos["Tipo_de_Jornada"]),
        ("DÍAS A SU HABER:", campos["Días_a_su_haber"]),
        ("SALDO FINAL:", campos["Saldo_final"]),
    ]
    current_y = top_y - 70
    for etiqueta, valor in filas:
        pdf.setFont("Helvetica-Bold", 11)
        pdf.drawString(left_margin, current_y, etiqueta)
        pdf.setFont("Helvetica", 11)
        pdf.drawString(220, current_y, str(valor or ""))
        current_y -= 26

    if registro.observaciones:
        current_y -= 10
        pdf.setFont("Helvetica-Bold", 10)
        pdf.drawString(left_margin, current_y, "OBSERVACIONES:")
        pdf.setFont("Helvetica", 10)
        pdf.drawString(left_margin, current_y - 16, registro.observaciones[:110])
        current_y -= 30

    # --- FIRMAS ---
    current_y -= 90
    pdf.line(left_margin, current_y, left_margin + 200, current_y)
    pdf.line(320, current_y, 520, current_y)
    pdf.setFont("Helvetica-Bold", 10)
    pdf.drawString(left_margin, current_y - 15, "FUNCIONARIO")
    pdf.drawString(320, current_y - 15, "AUTORIDAD")

    pdf.setFont("Helvetica", 8)
    pdf.drawString(left_margin, 50, f"{campos['RA']}/{campos['Emite']} - emitido el {fecha_numerica(registro.fecha_decreto)}")

    pdf.showPage()
    pdf.save()
    return destino
