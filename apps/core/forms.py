# apps/core/forms.py

import uuid
from decimal import Decimal

from django import forms
from django.core.exceptions import ValidationError

from apps.board.filters import BoardFilter, TaskFilter
from .models import Board, Column, Label, Product, Task

CLASSE_INPUT = 'form-input w-full px-4 py-2 border rounded-lg'

VIEW_MODES = {
    'board_view_mode': ('cards', 'table'),
    'dashboard_view_mode': ('grid', 'list'),
}


class BoardForm(forms.ModelForm):
    """Formulário de criação de board"""

    class Meta:
        model = Board
        fields = ['title', 'color']
        widgets = {
            'title': forms.TextInput(attrs={
                'class': CLASSE_INPUT,
                'placeholder': 'Nome do board',
                'autofocus': True
            }),
            'color': forms.TextInput(attrs={
                'class': CLASSE_INPUT,
                'placeholder': 'bg-blue-500'
            }),
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['color'].required = False

    def clean_title(self):
        title = self.cleaned_data['title'].strip()
        if not title:
            raise ValidationError("O título é obrigatório")
        return title


class BoardFieldsForm(forms.Form):
    """
    Atualização parcial dos campos do board
    Só os campos presentes nos dados enviados são aplicados
    """

    title = forms.CharField(max_length=200, required=False)
    color = forms.CharField(max_length=30, required=False)
    total_value = forms.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)
    upcoming_value = forms.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)
    received_value = forms.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)
    started_date = forms.DateField(required=False)
    notes = forms.CharField(required=False, widget=forms.Textarea(attrs={
        'class': 'form-textarea w-full px-4 py-2 border rounded-lg',
        'rows': 4
    }))

    VALORES = ('total_value', 'upcoming_value', 'received_value')

    def clean_title(self):
        title = (self.cleaned_data.get('title') or '').strip()
        if 'title' in self.data and not title:
            raise ValidationError("O título é obrigatório")
        return title

    def clean(self):
        cleaned = super().clean()
        if not any(nome in self.data for nome in self.fields):
            raise ValidationError("Nenhum campo informado")
        for nome in self.VALORES:
            if nome in self.data and cleaned.get(nome) is None and nome not in self.errors:
                self.add_error(nome, "Informe um valor")
        return cleaned

    def campos_alterados(self):
        """Dict apenas com os campos enviados, já validados"""
        return {
            nome: self.cleaned_data[nome]
            for nome in self.fields
            if nome in self.data
        }


class ColumnForm(forms.ModelForm):
    """Formulário de coluna"""

    class Meta:
        model = Column
        fields = ['title']
        widgets = {
            'title': forms.TextInput(attrs={
                'class': CLASSE_INPUT,
                'placeholder': 'Nome da coluna'
            }),
        }

    def clean_title(self):
        title = self.cleaned_data['title'].strip()
        if not title:
            raise ValidationError("O título é obrigatório")
        return title


class TaskForm(forms.ModelForm):
    """Formulário para criar/editar tarefas"""

    column_id = forms.UUIDField(required=False)

    class Meta:
        model = Task
        fields = ['title', 'description', 'assignee', 'due_date', 'priority']
        widgets = {
            'title': forms.TextInput(attrs={
                'class': CLASSE_INPUT,
                'placeholder': 'Título da tarefa'
            }),
            'description': forms.Textarea(attrs={
                'class': 'form-textarea w-full px-4 py-2 border rounded-lg',
                'rows': 4,
                'placeholder': 'Descrição...'
            }),
            'assignee': forms.TextInput(attrs={
                'class': CLASSE_INPUT,
                'placeholder': 'Responsável'
            }),
            'due_date': forms.DateInput(attrs={
                'class': CLASSE_INPUT,
                'type': 'date'
            }),
            'priority': forms.Select(attrs={
                'class': 'form-select w-full px-4 py-2 border rounded-lg'
            }),
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['priority'].required = False

    def clean_title(self):
        title = self.cleaned_data['title'].strip()
        if not title:
            raise ValidationError("O título é obrigatório")
        return title

    def clean_priority(self):
        return self.cleaned_data.get('priority') or 'medium'

    def dados(self):
        return {nome: self.cleaned_data[nome] for nome in self.Meta.fields}


class ProductForm(forms.Form):
    """Linha de produto do board"""

    PERIODOS = {valor for valor, _ in Product.PERIODO_CHOICES}

    name = forms.CharField(max_length=200)
    started_date = forms.DateField()
    period = forms.DecimalField(max_digits=3, decimal_places=1)
    price = forms.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    cost = forms.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)

    def clean_name(self):
        name = self.cleaned_data['name'].strip()
        if not name:
            raise ValidationError("Informe o nome do produto")
        return name

    def clean_period(self):
        period = self.cleaned_data['period']
        if period not in self.PERIODOS:
            raise ValidationError("Período deve ser 0.5, 1, 2 ou 3 anos")
        return period

    def clean_cost(self):
        return self.cleaned_data.get('cost') or Decimal('0')


CAMPOS_OBRIGATORIOS_PRODUTO = ('name', 'started_date', 'period', 'price')


def linha_incompleta(linha) -> bool:
    return any(
        linha.get(campo) in (None, '') or (campo == 'name' and not str(linha.get(campo)).strip())
        for campo in CAMPOS_OBRIGATORIOS_PRODUTO
    )


def clean_products(linhas):
    """
    Valida a lista de produtos enviada pelo editor

    Precisa ser uma lista; lista vazia remove todos os produtos do board.
    Linhas incompletas (sem nome, data, período ou preço) são descartadas.
    Retorna (produtos, erros) - erros indexados pela posição da linha.
    """
    if not isinstance(linhas, list):
        return [], {'products': [{'message': 'Lista de produtos inválida', 'code': 'invalid'}]}

    produtos = []
    erros = {}
    for idx, linha in enumerate(linhas):
        if not isinstance(linha, dict):
            erros[idx] = {'__all__': [{'message': 'Linha de produto inválida', 'code': 'invalid'}]}
            continue
        if linha_incompleta(linha):
            continue
        form = ProductForm(linha)
        if form.is_valid():
            produtos.append(form.cleaned_data)
        else:
            erros[idx] = form.errors.get_json_data()
    return produtos, erros


class LabelForm(forms.ModelForm):
    """Formulário de etiqueta"""

    class Meta:
        model = Label
        fields = ['text', 'color']
        widgets = {
            'text': forms.TextInput(attrs={
                'class': CLASSE_INPUT,
                'placeholder': 'Nome da etiqueta'
            }),
            'color': forms.TextInput(attrs={
                'class': CLASSE_INPUT,
                'placeholder': 'bg-gray-500'
            }),
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['color'].required = False

    def clean_text(self):
        text = self.cleaned_data['text'].strip()
        if not text:
            raise ValidationError("O texto da etiqueta é obrigatório")
        return text

    def clean_color(self):
        return self.cleaned_data.get('color') or 'bg-gray-500'


class SavedProductForm(forms.Form):
    name = forms.CharField(max_length=200)

    def clean_name(self):
        name = self.cleaned_data['name'].strip()
        if not name:
            raise ValidationError("Informe o nome do produto")
        return name


class LabelsSelectionForm(forms.Form):
    """Conjunto de etiquetas de um board"""

    label_ids = forms.JSONField(required=False)

    def clean_label_ids(self):
        ids = self.cleaned_data.get('label_ids') or []
        if not isinstance(ids, list):
            raise ValidationError("label_ids deve ser uma lista")
        try:
            return [str(uuid.UUID(str(i))) for i in ids]
        except ValueError:
            raise ValidationError("Identificador de etiqueta inválido")


class DragForm(forms.Form):
    """Payload de fim de arraste"""

    active_id = forms.CharField(max_length=64)
    over_id = forms.CharField(max_length=64, required=False)

    def clean_over_id(self):
        return self.cleaned_data.get('over_id') or None


class MoveTaskForm(forms.Form):
    """Movimento explícito de tarefa (coluna + posição)"""

    column_id = forms.UUIDField()
    index = forms.IntegerField(min_value=0)


class ResponsaveisField(forms.MultipleChoiceField):
    """Lista livre de responsáveis (texto)"""

    def valid_value(self, value):
        return bool(value)


class TaskFilterForm(forms.Form):
    """Filtros do board (query string)"""

    priority = forms.MultipleChoiceField(
        choices=Task.PRIORIDADE_CHOICES,
        required=False,
        widget=forms.CheckboxSelectMultiple
    )
    due_date = forms.DateField(required=False, widget=forms.DateInput(attrs={
        'class': 'form-input px-4 py-2 border rounded-lg',
        'type': 'date'
    }))
    assignee = ResponsaveisField(required=False)

    def to_filter(self) -> TaskFilter:
        if not self.is_valid():
            return TaskFilter()
        return TaskFilter(
            priorities=frozenset(self.cleaned_data.get('priority') or ()),
            due_date=self.cleaned_data.get('due_date'),
            assignees=frozenset(self.cleaned_data.get('assignee') or ()),
        )


class BoardFilterForm(forms.Form):
    """Filtros do painel (query string)"""

    start = forms.DateField(required=False, label='Criado a partir de')
    end = forms.DateField(required=False, label='Criado até')
    min_tasks = forms.IntegerField(required=False, min_value=0, label='Mínimo de tarefas')
    max_tasks = forms.IntegerField(required=False, min_value=0, label='Máximo de tarefas')

    def clean(self):
        cleaned = super().clean()
        start, end = cleaned.get('start'), cleaned.get('end')
        if start and end and start > end:
            raise ValidationError("A data inicial deve ser anterior à final")
        minimo, maximo = cleaned.get('min_tasks'), cleaned.get('max_tasks')
        if minimo is not None and maximo is not None and minimo > maximo:
            raise ValidationError("O mínimo de tarefas deve ser menor que o máximo")
        return cleaned

    def to_filter(self) -> BoardFilter:
        if not self.is_valid():
            return BoardFilter()
        return BoardFilter(
            start=self.cleaned_data.get('start'),
            end=self.cleaned_data.get('end'),
            min_tasks=self.cleaned_data.get('min_tasks'),
            max_tasks=self.cleaned_data.get('max_tasks'),
        )


class ViewModeForm(forms.Form):
    """Preferência de visualização guardada na sessão"""

    mode = forms.CharField(max_length=10)

    def __init__(self, *args, chave, **kwargs):
        super().__init__(*args, **kwargs)
        self.chave = chave

    def clean_mode(self):
        mode = self.cleaned_data['mode']
        if mode not in VIEW_MODES[self.chave]:
            raise ValidationError(f"Modo inválido: {mode}")
        return mode
