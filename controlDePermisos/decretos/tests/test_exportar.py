from datetime import date
from io import BytesIO

from openpyxl import load_workbook

from decretos.exportar import (
    COLUMNAS_TABLA,
    campos_documento,
    escribir_pdf_decreto,
    libro_decretos,
    nombre_archivo_decreto,
)
from decretos.tests.fabricas import registro


class TestExcel:

    def test_encabezados_y_filas(self):
        registros = [
            registro(id='a', cantidad='0.5', haber='6'),
            registro(id='b', tipo='FL', acto='002/2026', cantidad='16', haber='15'),
        ]
        wb = libro_decretos(registros, "Todos")
        ws = wb.active

        assert ws.title == "Todos"
        assert [c.value for c in ws[1]] == COLUMNAS_TABLA
        assert ws.cell(2, 1).value == 1
        assert ws.cell(2, 4).value == '001/2026'
        assert ws.cell(2, 8).value == 0.5
        assert ws.cell(2, 9).value == '06 de enero de 2026'
        assert ws.cell(2, 13).value == 5.5
        assert ws.cell(3, 13).value == -1.0
        assert ws.cell(3, 13).font.bold is True

    def test_se_puede_guardar_y_leer(self):
        buffer = BytesIO()
        libro_decretos([registro()]).save(buffer)
        buffer.seek(0)
        ws = load_workbook(buffer).active
        assert ws.max_row == 2
        assert ws.cell(2, 5).value == 'MARÍA SOLEDAD JARRIN ROJAS'


class TestDocumento:

    def test_nombre_de_archivo(self):
        r = registro(acto='013/2026', funcionario='María Soledad Jarrin Rojas')
        assert nombre_archivo_decreto(r) == 'SGDP-PA N° 013-2026 - MARÍA SOLEDAD JARRIN ROJAS'

    def test_campos(self):
        campos = campos_documento(registro(cantidad='0.5', haber='6', tipo_jornada='(Jornada mañana)'))
        assert campos['Decreto'] == '001/2026'
        assert campos['Funcionario'] == 'María Soledad Jarrin Rojas'
        assert campos['Fecha'] == '05 de enero de 2026'
        assert campos['Fecha_de_inicio'] == 'martes, 06 de enero de 2026'
        assert campos['Cantidad_de_días'] == '0,5'
        assert campos['Tipo_de_Jornada'] == 'Jornada mañana'
        assert campos['Días_a_su_haber'] == '6,0'
        assert campos['Saldo_final'] == '5,5'

    def test_dias_enteros_sin_decimal(self):
        assert campos_documento(registro(cantidad='2'))['Cantidad_de_días'] == '2'

    def test_pdf(self):
        buffer = BytesIO()
        escribir_pdf_decreto(buffer, registro(fecha_decreto=date(2026, 1, 5), observaciones='Trámite'))
        assert buffer.getvalue().startswith(b'%PDF')
