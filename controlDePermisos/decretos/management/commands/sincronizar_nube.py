from django.core.management.base import BaseCommand, CommandError

from decretos.estado import EstadoAplicacion


class Command(BaseCommand):
    help = 'Envía los decretos a la planilla en la nube (--push) o los recarga desde ella (--pull)'

    def add_arguments(self, parser):
        grupo = parser.add_mutually_exclusive_group(required=True)
        grupo.add_argument('--push', action='store_true', help='Envía el conjunto local completo a la nube')
        grupo.add_argument('--pull', action='store_true', help='Reemplaza los datos locales por los de la nube')
        parser.add_argument('--funcionarios', action='store_true', help='Opera sobre la nómina de funcionarios')

    def handle(self, *args, **options):
        estado = EstadoAplicacion.actual()
        sincronizador = estado.sincronizador

        # El comando termina antes que cualquier reintento en segundo plano
        try:
            if options['funcionarios']:
                self._funcionarios(estado, options['push'])
            else:
                self._decretos(estado, options['push'])
        finally:
            sincronizador.cancelar_reintento()

    def _decretos(self, estado, push):
        if push:
            cantidad = len(estado.registros())
            resultado = estado.sincronizador.push(estado.registros(), reintentar=False)
            if not resultado.exito:
                raise CommandError(f'No se pudo sincronizar: {resultado.error}')
            self.stdout.write(self.style.SUCCESS(f'{cantidad} decretos enviados a la nube.'))
            return

        if not estado.reemplazar_desde_nube():
            raise CommandError(f'No se pudieron leer los decretos: {estado.sincronizador.ultimo_error}')
        self.stdout.write(self.style.SUCCESS(f'{len(estado.registros())} decretos recargados desde la nube.'))

    def _funcionarios(self, estado, push):
        if push:
            resultado = estado.sincronizador.push_funcionarios(estado.funcionarios())
            if not resultado.exito:
                raise CommandError(f'No se pudo sincronizar la nómina: {resultado.error}')
            self.stdout.write(self.style.SUCCESS(f'{len(estado.funcionarios())} funcionarios enviados a la nube.'))
            return

        cantidad = estado.importar_funcionarios()
        if cantidad is None:
            raise CommandError('No se pudo leer la nómina de la nube.')
        if cantidad == 0:
            self.stdout.write(self.style.WARNING('La nómina de la nube está vacía; se conserva la local.'))
            return
        self.stdout.write(self.style.SUCCESS(f'{cantidad} funcionarios importados desde la nube.'))
