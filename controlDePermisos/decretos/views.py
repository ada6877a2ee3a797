from datetime import date, datetime

import httpx
from django.conf import settings
from django.contrib import messages
from django.contrib.auth.decorators import login_required, user_passes_test
from django.core.paginator import Paginator
from django.http import HttpResponse, JsonResponse
from django.shortcuts import render, redirect, get_object_or_404
from django.utils import timezone
from django.db.models import Q
from django.utils.http import content_disposition_header, url_has_allowed_host_and_scheme
from django.views.decorators.http import require_POST
import logging

from .estado import EstadoAplicacion, RegistroNoEncontrado
from .exportar import CONTENT_TYPE_EXCEL, escribir_pdf_decreto, libro_decretos, nombre_archivo_decreto
from .formato import decimal_con_coma
from .models import Decreto, DiaFeriado, Funcionario
from .registros import (
    DIAS_BASE,
    MATERIA_POR_DEFECTO,
    NOMBRES_TIPO,
    OPCIONES_JORNADA,
    TIPO_PERMISO,
    TIPOS_SOLICITUD,
    JORNADA_COMPLETA,
)
from .reportes import (
    PESTANA_TODOS,
    calendario_mensual,
    filtrar_registros,
    notificaciones_saldo,
    resumen_dashboard,
)
from .validadores import formatear_rut, validar_formulario, validar_rut

logger = logging.getLogger(__name__)

ITEMS_POR_PAGINA = 15
GRUPO_EDITORES = 'Editores'


def es_editor(user):
    """Staff o miembros del grupo 'Editores' pueden modificar decretos."""
    if not user.is_authenticated:
        return False
    return user.is_staff or user.groups.filter(name=GRUPO_EDITORES).exists()


def _avisar_sync(request, resultado, mensaje_exito):
    """Traduce el resultado de la sincronización a mensajes para el usuario."""
    if resultado.exito:
        messages.success(request, mensaje_exito)
    else:
        messages.warning(
            request,
            f"Los cambios se guardaron localmente, pero no se pudieron sincronizar con la nube: {resultado.error}"
        )


def _volver(request):
    destino = request.POST.get("next")
    if destino and url_has_allowed_host_and_scheme(destino, allowed_hosts={request.get_host()}):
        return redirect(destino)
    return redirect("decretos:listado")


def _estado_sync(estado):
    sincronizador = estado.sincronizador
    return {
        'en_linea': sincronizador.en_linea,
        'error_sync': sincronizador.error,
        'ultimo_error': sincronizador.ultimo_error,
        'ultima_sincronizacion': sincronizador.ultima_sincronizacion,
        'reintento_pendiente': sincronizador.reintento_pendiente,
        'puede_deshacer': estado.puede_deshacer(),
    }


# ============================================================
#   DASHBOARD Y LISTADO
# ============================================================

@login_required
def dashboard(request):
    estado = EstadoAplicacion.actual()
    registros = estado.registros()

    context = {
        'resumen': resumen_dashboard(registros, timezone.localdate()),
        'notificaciones': notificaciones_saldo(registros, estado.funcionarios()),
        'recientes': registros[:5],
        'es_editor': es_editor(request.user),
        **_estado_sync(estado),
    }
    return render(request, 'decretos/dashboard.html', context)


@login_required
def listado(request):
    estado = EstadoAplicacion.actual()
    registros = estado.registros()

    pestana = request.GET.get('tab', PESTANA_TODOS).upper()
    if pestana not in TIPOS_SOLICITUD:
        pestana = PESTANA_TODOS
    busqueda = request.GET.get('q', '')
    orden = request.GET.get('orden')
    sentido = 'asc' if request.GET.get('sentido') == 'asc' else 'desc'

    filtrados = filtrar_registros(registros, pestana, busqueda, orden, sentido)
    pagina = Paginator(filtrados, ITEMS_POR_PAGINA).get_page(request.GET.get('page'))

    context = {
        'pagina': pagina,
        'pestana': pestana,
        'busqueda': busqueda,
        'orden': orden or '',
        'sentido': sentido,
        'conteos': {
            PESTANA_TODOS: len(registros),
            **{tipo: sum(1 for r in registros if r.solicitud_type == tipo) for tipo in TIPOS_SOLICITUD},
        },
        'total_filtrados': len(filtrados),
        'es_editor': es_editor(request.user),
        **_estado_sync(estado),
    }
    return render(request, 'decretos/listado.html', context)


# ============================================================
#   FORMULARIO DE DECRETOS
# ============================================================

def _contexto_formulario(datos, registro=None):
    return {
        'datos': datos,
        'registro': registro,
        'funcionarios': Funcionario.objects.all(),
        'tipos': NOMBRES_TIPO.items(),
        'jornadas': OPCIONES_JORNADA,
    }


def _datos_iniciales(estado, tipo, rut=None):
    """Valores con que se abre el formulario de un decreto nuevo."""
    hoy = timezone.localdate()
    datos = {
        'solicitud_type': tipo,
        'materia': MATERIA_POR_DEFECTO,
        'acto': estado.siguiente_correlativo(hoy.year),
        'periodo': str(hoy.year),
        'cantidad_dias': '1',
        'tipo_jornada': JORNADA_COMPLETA,
        'dias_haber': str(DIAS_BASE[tipo]),
        'fecha_decreto': hoy.isoformat(),
        'ra': 'MGA',
        'emite': 'mga',
    }
    if rut:
        funcionario = Funcionario.objects.filter(rut=rut).first()
        if funcionario:
            datos['funcionario'] = funcionario.nombre
        datos['rut'] = rut
        datos['dias_haber'] = str(estado.dias_haber_sugeridos(rut, tipo))
    return datos


def _datos_de_registro(registro):
    return {
        'solicitud_type': registro.solicitud_type,
        'materia': registro.materia,
        'acto': registro.acto,
        'funcionario': registro.funcionario,
        'rut': registro.rut,
        'periodo': registro.periodo,
        'cantidad_dias': str(registro.cantidad_dias),
        'fecha_inicio': registro.fecha_inicio.isoformat() if registro.fecha_inicio else '',
        'tipo_jornada': registro.tipo_jornada,
        'dias_haber': str(registro.dias_haber),
        'fecha_decreto': registro.fecha_decreto.isoformat() if registro.fecha_decreto else '',
        'ra': registro.ra,
        'emite': registro.emite,
        'observaciones': registro.observaciones,
    }


def _advertir_saldo_negativo(request, registro):
    if registro.saldo < 0:
        messages.warning(
            request,
            f"El saldo de {registro.funcionario} quedó negativo ({decimal_con_coma(registro.saldo)} días)."
        )


@login_required
@user_passes_test(es_editor)
def crear_decreto(request):
    estado = EstadoAplicacion.actual()

    if request.method == 'POST':
        limpios, errores = validar_formulario(request.POST)
        if errores:
            for error in errores:
                messages.error(request, error)
            return render(request, 'decretos/formulario.html', _contexto_formulario(request.POST))

        # Sin acto se asigna el siguiente correlativo del año del decreto
        if not limpios['acto']:
            limpios['acto'] = estado.siguiente_correlativo(limpios['fecha_decreto'].year)

        registro, resultado = estado.crear_registro(limpios)
        _advertir_saldo_negativo(request, registro)
        _avisar_sync(request, resultado, f"Decreto {registro.acto} creado y sincronizado.")
        return redirect('decretos:listado')

    tipo = request.GET.get('tipo', TIPO_PERMISO).upper()
    if tipo not in TIPOS_SOLICITUD:
        tipo = TIPO_PERMISO
    datos = _datos_iniciales(estado, tipo, request.GET.get('rut'))
    return render(request, 'decretos/formulario.html', _contexto_formulario(datos))


@login_required
@user_passes_test(es_editor)
def editar_decreto(request, id_registro):
    decreto = get_object_or_404(Decreto, pk=id_registro)
    estado = EstadoAplicacion.actual()

    if request.method == 'POST':
        limpios, errores = validar_formulario(request.POST)
        if errores:
            for error in errores:
                messages.error(request, error)
            return render(request, 'decretos/formulario.html', _contexto_formulario(request.POST, decreto))

        if not limpios['acto']:
            limpios['acto'] = decreto.acto
        try:
            registro, resultado = estado.actualizar_registro(id_registro, limpios)
        except RegistroNoEncontrado:
            messages.error(request, "El decreto ya no existe.")
            return redirect('decretos:listado')
        _advertir_saldo_negativo(request, registro)
        _avisar_sync(request, resultado, f"Decreto {registro.acto} actualizado.")
        return redirect('decretos:listado')

    datos = _datos_de_registro(decreto.a_registro())
    return render(request, 'decretos/formulario.html', _contexto_formulario(datos, decreto))


@login_required
@user_passes_test(es_editor)
def eliminar_decreto(request, id_registro):
    decreto = get_object_or_404(Decreto, pk=id_registro)

    if request.method == 'POST':
        acto = decreto.acto
        try:
            resultado = EstadoAplicacion.actual().eliminar_registro(id_registro)
        except RegistroNoEncontrado:
            messages.error(request, "El decreto ya no existe.")
            return redirect('decretos:listado')
        _avisar_sync(request, resultado, f"Decreto {acto} eliminado.")
        return redirect('decretos:listado')

    return render(request, 'decretos/confirmar_eliminar.html', {'decreto': decreto})


@login_required
@user_passes_test(es_editor)
@require_POST
def deshacer(request):
    resultado = EstadoAplicacion.actual().deshacer()
    if resultado is None:
        messages.info(request, "No hay cambios para deshacer.")
    else:
        _avisar_sync(request, resultado, "Se deshizo el último cambio.")
    return _volver(request)


# ============================================================
#   SINCRONIZACIÓN MANUAL
# ============================================================

@login_required
@user_passes_test(es_editor)
@require_POST
def sincronizar(request):
    resultado = EstadoAplicacion.actual().sincronizar()
    if resultado.exito:
        messages.success(request, "Datos enviados a la nube.")
    else:
        messages.error(request, f"No se pudo sincronizar: {resultado.error}")
    return _volver(request)


@login_required
@user_passes_test(es_editor)
@require_POST
def recargar(request):
    estado = EstadoAplicacion.actual()
    if estado.reemplazar_desde_nube():
        messages.success(request, "Datos recargados desde la nube.")
    else:
        messages.error(
            request,
            f"No se pudieron leer los datos de la nube: {estado.sincronizador.ultimo_error}. Se conservan los datos locales."
        )
    return _volver(request)


# --- VISTA para obtener saldo por AJAX ---
@login_required
def saldo_ajax(request):
    """Días a su haber sugeridos y saldo vigente de un funcionario, en JSON."""
    rut = (request.GET.get('rut') or '').strip()
    tipo = (request.GET.get('tipo') or TIPO_PERMISO).upper()

    if not rut:
        return JsonResponse({'error': 'RUT no proporcionado'}, status=400)
    if tipo not in TIPOS_SOLICITUD:
        return JsonResponse({'error': f'Tipo de solicitud inválido: {tipo}'}, status=400)

    estado = EstadoAplicacion.actual()
    rut = formatear_rut(rut) if validar_rut(rut) else rut
    saldo = estado.saldo_detectado(rut, tipo)
    return JsonResponse({
        'rut': rut,
        'tipo': tipo,
        'dias_haber': float(estado.dias_haber_sugeridos(rut, tipo)),
        'saldo_detectado': float(saldo) if saldo is not None else None,
        'correlativo': estado.siguiente_correlativo(),
    })


# ============================================================
#   CALENDARIO
# ============================================================

@login_required
def calendario(request):
    hoy = timezone.localdate()
    try:
        anio = int(request.GET.get('anio', hoy.year))
        mes = int(request.GET.get('mes', hoy.month))
        if not 1 <= mes <= 12:
            raise ValueError(mes)
    except ValueError:
        anio, mes = hoy.year, hoy.month

    registros = EstadoAplicacion.actual().registros()
    context = {
        'calendario': calendario_mensual(registros, anio, mes, hoy),
        'dias_semana': ['Dom', 'Lun', 'Mar', 'Mié', 'Jue', 'Vie', 'Sáb'],
    }
    return render(request, 'decretos/calendario.html', context)


# ============================================================
#   EXPORTACIÓN
# ============================================================

@login_required
def exportar_excel(request):
    """Exporta los decretos de la pestaña y búsqueda actuales a Excel."""
    pestana = request.GET.get('tab', PESTANA_TODOS).upper()
    if pestana not in TIPOS_SOLICITUD:
        pestana = PESTANA_TODOS
    registros = filtrar_registros(
        EstadoAplicacion.actual().registros(),
        pestana,
        request.GET.get('q', ''),
        request.GET.get('orden'),
        'asc' if request.GET.get('sentido') == 'asc' else 'desc',
    )

    titulo = "Decretos" if pestana == PESTANA_TODOS else NOMBRES_TIPO[pestana]
    wb = libro_decretos(registros, titulo)

    response = HttpResponse(content_type=CONTENT_TYPE_EXCEL)
    nombre = f"decretos_{pestana.lower()}_{timezone.localdate():%Y%m%d}.xlsx"
    response['Content-Disposition'] = content_disposition_header(True, nombre)
    wb.save(response)
    logger.info("Exportados %s decretos a Excel (%s)", len(registros), pestana)
    return response


@login_required
def exportar_pdf(request, id_registro):
    registro = get_object_or_404(Decreto, pk=id_registro).a_registro()

    response = HttpResponse(content_type='application/pdf')
    response['Content-Disposition'] = content_disposition_header(True, f"{nombre_archivo_decreto(registro)}.pdf")
    escribir_pdf_decreto(response, registro)
    return response


@login_required
def documento_nube(request, id_registro):
    """Genera el decreto desde la plantilla en la nube y redirige al documento."""
    como_pdf = request.GET.get('formato', 'pdf') != 'doc'
    try:
        resultado = EstadoAplicacion.actual().generar_documento(id_registro, como_pdf)
    except RegistroNoEncontrado:
        messages.error(request, "El decreto no existe.")
        return redirect('decretos:listado')

    if not resultado.exito:
        messages.error(request, f"No se pudo generar el documento: {resultado.error}")
        return redirect('decretos:listado')
    return redirect(resultado.url)


# ============================================================
#   FUNCIONARIOS
# ============================================================

@login_required
def funcionarios(request):
    estado = EstadoAplicacion.actual()

    if request.method == 'POST':
        if not es_editor(request.user):
            messages.error(request, "No tienes permisos para modificar la nómina.")
            return redirect('decretos:funcionarios')

        errores = []
        nombre = (request.POST.get('nombre') or '').strip().upper()
        rut = (request.POST.get('rut') or '').strip()
        if not nombre or not rut:
            errores.append("Nombre y RUT son obligatorios.")
        elif not validar_rut(rut):
            errores.append(f"El RUT {rut} no es válido.")

        if errores:
            for error in errores:
                messages.error(request, error)
        else:
            resultado = estado.agregar_funcionario(nombre, formatear_rut(rut))
            _avisar_sync(request, resultado, f"Funcionario {nombre} guardado.")
        return redirect('decretos:funcionarios')

    busqueda = (request.GET.get('q') or '').strip()
    lista = Funcionario.objects.all()
    if busqueda:
        lista = lista.filter(Q(nombre__icontains=busqueda) | Q(rut__icontains=busqueda))

    context = {
        'funcionarios': lista,
        'busqueda': busqueda,
        'es_editor': es_editor(request.user),
    }
    return render(request, 'decretos/funcionarios.html', context)


@login_required
@user_passes_test(es_editor)
@require_POST
def eliminar_funcionario(request, rut):
    try:
        resultado = EstadoAplicacion.actual().eliminar_funcionario(rut)
    except RegistroNoEncontrado:
        messages.error(request, f"No existe un funcionario con RUT {rut}.")
        return redirect('decretos:funcionarios')
    _avisar_sync(request, resultado, f"Funcionario {rut} eliminado.")
    return redirect('decretos:funcionarios')


@login_required
@user_passes_test(es_editor)
@require_POST
def importar_funcionarios(request):
    estado = EstadoAplicacion.actual()
    cantidad = estado.importar_funcionarios()
    if cantidad is None:
        messages.error(request, "No se pudo leer la nómina de la nube.")
    elif cantidad == 0:
        messages.warning(request, "La nómina de la nube está vacía; se conserva la local.")
    else:
        messages.success(request, f"Se importaron {cantidad} funcionarios desde la nube.")
    return redirect('decretos:funcionarios')


# ============================================================
#   FERIADOS
# ============================================================

def descargar_feriados(anio, client=None):
    """
    Descarga los feriados de Chile del año y crea los que falten.
    Devuelve la cantidad creada. Lanza httpx.HTTPError si falla la descarga.
    """
    url = settings.FERIADOS_API_URL.format(anio=anio)
    client = client or httpx.Client(timeout=10.0)
    with client:
        response = client.get(url)
        response.raise_for_status()
        data = response.json()

    count = 0
    for item in data:
        fecha_obj = datetime.strptime(item.get('date'), '%Y-%m-%d').date()
        nombre = item.get('localName') or item.get('name')
        _, creado = DiaFeriado.objects.get_or_create(fecha=fecha_obj, defaults={'descripcion': nombre})
        if creado:
            count += 1
    logger.info("Descargados %s feriados de %s", count, anio)
    return count


@login_required
@user_passes_test(es_editor)
def feriados(request):
    if request.method == 'POST':
        fecha = request.POST.get('fecha')
        descripcion = (request.POST.get('descripcion') or '').strip()

        try:
            fecha_obj = date.fromisoformat(fecha or '')
        except ValueError:
            fecha_obj = None

        if fecha_obj is None or not descripcion:
            messages.error(request, 'Debe indicar una fecha válida y una descripción.')
        elif DiaFeriado.objects.filter(fecha=fecha_obj).exists():
            messages.error(request, 'Ya existe un feriado en esta fecha.')
        else:
            DiaFeriado.objects.create(fecha=fecha_obj, descripcion=descripcion)
            messages.success(request, 'Feriado agregado correctamente.')
        return redirect('decretos:feriados')

    # Año seleccionado (por defecto el actual) o 'todo'
    hoy = timezone.localdate()
    anio_param = request.GET.get('anio')
    if anio_param == 'todo':
        anio = 'todo'
    else:
        try:
            anio = int(anio_param) if anio_param else hoy.year
        except ValueError:
            anio = hoy.year

    # Auto-importación si el año está vacío
    if isinstance(anio, int) and not DiaFeriado.objects.filter(fecha__year=anio).exists():
        try:
            creados = descargar_feriados(anio)
            if creados:
                messages.success(request, f'Se descargaron {creados} feriados para el año {anio}.')
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("No se pudieron descargar los feriados de %s: %s", anio, e)
            messages.warning(request, f'No se pudieron descargar los feriados de {anio} automáticamente: {e}')

    lista = DiaFeriado.objects.all()
    if isinstance(anio, int):
        lista = lista.filter(fecha__year=anio)

    context = {
        'feriados': lista,
        'anio': anio,
        'anio_anterior': hoy.year - 1,
        'anio_actual': hoy.year,
        'anio_siguiente': hoy.year + 1,
    }
    return render(request, 'decretos/feriados.html', context)


@login_required
@user_passes_test(es_editor)
@require_POST
def eliminar_feriado(request, feriado_id):
    feriado = get_object_or_404(DiaFeriado, pk=feriado_id)
    feriado.delete()
    messages.success(request, 'Feriado eliminado correctamente.')
    return redirect('decretos:feriados')
