from collections import namedtuple


class Role:
    """User roles for permissions."""
    EQUIPE = 'equipe'
    DIRETOR = 'diretor'

    ALL = (EQUIPE, DIRETOR)
    LABELS = {EQUIPE: 'Equipe', DIRETOR: 'Diretor'}


class ProcessStatus:
    IN_PROGRESS = 'em_andamento'


Stage = namedtuple('Stage', ['id', 'label', 'order'])


class StageRegistry:
    """Fixed, ordered catalog of the procurement workflow stages."""

    UNKNOWN_LABEL = 'Unknown'

    STAGES = tuple(Stage(stage_id, label, order) for order, (stage_id, label) in enumerate([
        ('iniciacao', 'Iniciação'),
        ('especificacao', 'Especificação Técnica'),
        ('analise_contratos', 'Análise de Contratos'),
        ('analise_juridica', 'Análise Jurídica'),
        ('autorizacao', 'Autorização'),
        ('licitacao', 'Licitação'),
        ('homologacao', 'Homologação'),
        ('contratacao', 'Contratação'),
        ('finalizado', 'Finalizado'),
    ]))

    _BY_ID = {stage.id: stage for stage in STAGES}

    @classmethod
    def ids(cls):
        return [stage.id for stage in cls.STAGES]

    @classmethod
    def first(cls):
        return cls.STAGES[0].id

    @classmethod
    def get(cls, stage_id):
        return cls._BY_ID.get(stage_id)

    @classmethod
    def is_valid(cls, stage_id):
        return stage_id in cls._BY_ID

    @classmethod
    def label(cls, stage_id):
        stage = cls._BY_ID.get(stage_id)
        return stage.label if stage else cls.UNKNOWN_LABEL

    @classmethod
    def position(cls, stage_id):
        stage = cls._BY_ID.get(stage_id)
        return stage.order if stage else None

    @classmethod
    def next_stage(cls, stage_id):
        """Returns the successor id, or None at the terminal stage or for unknown ids."""
        stage = cls._BY_ID.get(stage_id)
        if stage is None or stage.order + 1 >= len(cls.STAGES):
            return None
        return cls.STAGES[stage.order + 1].id

    @classmethod
    def is_terminal(cls, stage_id):
        return cls.is_valid(stage_id) and cls.next_stage(stage_id) is None
